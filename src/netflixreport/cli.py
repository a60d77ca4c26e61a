import json
import os
import sys
from typing import Annotated, Dict, List, Optional

import typer
import yaml
from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from netflixreport import __version__
from netflixreport.lib.config import (
    CONFIG_PATH,
    read_config, default_config, ReportConfig, ConfigurationError,
)
from netflixreport.lib.load import LoadError
from netflixreport.lib.models import Row
from netflixreport.lib.queries import QueryError, queries
from netflixreport.lib.report import ReportEngine, ReportError

app = typer.Typer()


def _get_config(path: Optional[str], console: Console) -> ReportConfig:
    # No configuration at all is fine, defaults apply.
    if not path and not os.path.isfile(CONFIG_PATH):
        return ReportConfig()
    try:
        return read_config(path)
    except ConfigurationError as e:
        console.print(f"[bold red]{e}")
        console.print("[white]Consider using 'setup' to install default configuration file")
        sys.exit(2)


def _setup_logging(config: ReportConfig, verbose: bool):
    # --verbose only controls the console, a configured logfile always gets the messages.
    logger.remove()
    if verbose:
        logger.add(sys.stderr, level="DEBUG")
    if config.logging and config.logging.logfile:
        logger.add(config.logging.logfile, level=config.logging.loglevel)
    logger.enable("netflixreport")


def _parse_params(params: List[str]) -> Dict[str, object]:
    """key=value pairs, values starting with '{' or '[' are read as YAML (mappings, lists)."""
    result = {}
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{param}'")
        value = value.strip()
        if value[:1] in ("{", "["):
            try:
                value = yaml.safe_load(value)
            except yaml.YAMLError as e:
                raise typer.BadParameter(f"Can't parse value of '{key.strip()}': {e}")
        result[key.strip()] = value
    return result


def _rows_to_table(name: str, rows: List[Row]) -> Table:
    table = Table(title=name, title_style="bold blue", title_justify="left")
    if not rows:
        return table
    columns = list(type(rows[0]).model_fields)
    for column in columns:
        table.add_column(column)
    for row in rows:
        data = row.model_dump(mode="json")
        table.add_row(*(str(data[column]) for column in columns))
    return table


def render(name: str, rows: List[Row], output_format: str, console: Console):
    if output_format == "json":
        console.print_json(json.dumps([row.model_dump(mode="json") for row in rows]))
    elif output_format == "yaml":
        data = [row.model_dump(mode="json") for row in rows]
        console.out(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
    else:
        console.print(_rows_to_table(name, rows))
        console.print(Text(f"{len(rows)} row(s)", style="green"))


@app.command(name="queries")
def list_queries(
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Show log messages.")
        ] = False,
):
    """List available queries."""
    if not verbose:
        logger.disable("netflixreport")

    console = Console(quiet=False)
    console.rule(title="[blue] Available queries", align="left", style="blue")
    for query in queries:
        params = ", ".join(query.parameters.model_fields) or "-"
        console.print(f"[green]{query.name}[/green] [white]({params})[/white]: {query.description}")


@app.command()
def run(
        name: Annotated[
            str,
            typer.Argument(help="Name of the query to run, see 'queries'.")
        ],
        param: Annotated[
            Optional[List[str]],
            typer.Option(
                "--param", "-p",
                help="Query parameter as key=value, can be repeated."
            )
        ] = None,
        dataset: Annotated[
            Optional[str],
            typer.Option(
                "--dataset", "-d",
                help="Path to the titles CSV file (overrides configuration)."
            )
        ] = None,
        output_format: Annotated[
            Optional[str],
            typer.Option(
                "--format", "-f",
                help="Output format (table, json, yaml)"
            )
        ] = None,
        configuration: Annotated[
            Optional[str],
            typer.Option(
                "--configuration", "-c",
                help="Use a non-default configuration file."
            )
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Show log messages.")
        ] = False,
):
    """Run a single query and print its rows."""
    if not verbose:
        logger.disable("netflixreport")

    console = Console(quiet=False)
    parsed_config = _get_config(configuration, console)
    _setup_logging(parsed_config, verbose)

    if dataset:
        parsed_config.dataset_path = dataset
    output_format = output_format or parsed_config.output_format
    if output_format not in ("table", "json", "yaml"):
        console.print(Text(f"Unknown output format '{output_format}'.", style="bold red"))
        raise typer.Abort()

    params = _parse_params(param or [])

    try:
        engine = ReportEngine.from_config(parsed_config)
    except (LoadError, ReportError) as e:
        console.print(Text(str(e), style="bold red"))
        sys.exit(2)

    try:
        rows = engine.run(name, **params)
    except (ReportError, QueryError) as e:
        if verbose:
            logger.exception(e)
        console.print(Text(str(e), style="bold red"))
        raise typer.Exit(1)

    render(name, rows, output_format, console)


@app.command()
def setup(
        configuration: Annotated[
            Optional[str],
            typer.Option(
                "--configuration", "-c",
                help="Use a non-default configuration file."
            )
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Show log messages.")
        ] = False,
):
    """Setup a default configuration file."""
    if not verbose:
        logger.disable("netflixreport")

    console = Console(quiet=False)
    new_config: ReportConfig = default_config.model_copy(deep=True)
    target = configuration or CONFIG_PATH

    logger.debug(f"Creating new config at {target}")
    if os.path.exists(target) and not Confirm.ask(f"File already exists {target}, overwrite?"):
        raise typer.Abort()

    dataset_path = Prompt.ask("Enter path to the titles CSV file", default=new_config.dataset_path)
    if not dataset_path:
        console.print("[white]No dataset path provided.")
        raise typer.Abort()
    new_config.dataset_path = os.path.abspath(os.path.expanduser(dataset_path))

    config_obj = {
        "netflixreport": new_config.model_dump()
    }

    os.makedirs(os.path.dirname(os.path.abspath(target)), exist_ok=True)
    with open(target, "w") as file:
        yaml.safe_dump(config_obj, file)

    console.print(Text(f"Configuration file written to {target}", style="green bold"))


@app.command()
def info(
        configuration: Annotated[
            Optional[str],
            typer.Option(
                "--configuration", "-c",
                help="Use a non-default configuration file."
            )
        ] = None,
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Show log messages.")
        ] = False,
):
    """Show configuration details."""
    if not verbose:
        logger.disable("netflixreport")

    console = Console(quiet=False)
    parsed_config = _get_config(configuration, console)

    console.rule(title=f"[blue] Configuration @ {configuration or CONFIG_PATH}", align="left", style="blue")
    console.print(f"[white] dataset: {parsed_config.dataset_path}")
    console.print(f"[white] output format: {parsed_config.output_format}")
    for keyword, category in parsed_config.keyword_categories.items():
        console.print(f"[white] keyword '{keyword}' --> {category}")
    console.print(f"[white] fallback category: {parsed_config.fallback_category}")


@app.command()
def version(
        verbose: Annotated[
            bool,
            typer.Option("--verbose", "-v", help="Show log messages.")
        ] = False,
):
    """Show version."""
    if not verbose:
        logger.disable("netflixreport")

    console = Console(quiet=False)
    console.print(Text(__version__), style="bold green")


def main():
    app()


if __name__ == "__main__":
    main()
