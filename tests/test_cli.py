import json

import pytest
import yaml
from loguru import logger
from typer.testing import CliRunner

from netflixreport import __version__
from netflixreport.cli import app, _parse_params

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path, dataset_path):
    path = tmp_path / "netflixreport.yml"
    with open(path, "w") as file:
        yaml.safe_dump({"netflixreport": {"dataset_path": dataset_path}}, file)
    return str(path)


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_list_queries():
    result = runner.invoke(app, ["queries"])
    assert result.exit_code == 0
    assert "top_actor_pairs" in result.output
    assert "country_release_share" in result.output


def test_run_json(dataset_path):
    result = runner.invoke(app, ["run", "count_by_type", "--dataset", dataset_path, "--format", "json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [
        {"type": "Movie", "total": 6},
        {"type": "TV Show", "total": 4},
    ]


def test_run_yaml_with_params(dataset_path):
    result = runner.invoke(app, [
        "run", "country_release_share",
        "-d", dataset_path,
        "-f", "yaml",
        "-p", "country=India",
        "-p", "limit=1",
    ])
    assert result.exit_code == 0, result.output
    assert yaml.safe_load(result.output) == [{"year": 2019, "total": 2, "share": "66.67"}]


def test_run_table_from_config(config_file):
    result = runner.invoke(app, ["run", "longest_movie", "-c", config_file])
    assert result.exit_code == 0, result.output
    assert "s5" in result.output
    assert "1 row(s)" in result.output


def test_run_unknown_query(dataset_path):
    result = runner.invoke(app, ["run", "nope", "-d", dataset_path])
    assert result.exit_code == 1
    assert "Unknown query" in result.output


def test_run_division_by_zero(dataset_path):
    result = runner.invoke(app, ["run", "country_release_share", "-d", dataset_path, "-p", "country=Atlantis"])
    assert result.exit_code == 1


def test_run_load_error(test_folder):
    result = runner.invoke(app, ["run", "count_by_type", "-d", f"{test_folder}/missing_column.csv"])
    assert result.exit_code == 2


def test_run_missing_config(tmp_path):
    result = runner.invoke(app, ["run", "count_by_type", "-c", str(tmp_path / "nope.yml")])
    assert result.exit_code == 2


@pytest.mark.parametrize("params, expected", [
    ([], {}),
    (["year=2019"], {"year": "2019"}),
    (["actor=Shah Rukh Khan"], {"actor": "Shah Rukh Khan"}),
    (["keywords={kill: Bad, love: Good}"], {"keywords": {"kill": "Bad", "love": "Good"}}),
])
def test_parse_params(params, expected):
    assert _parse_params(params) == expected


def test_run_invalid_yaml_param(dataset_path):
    result = runner.invoke(app, ["run", "classify_by_keywords", "-d", dataset_path, "-p", "keywords={kill: "])
    assert result.exit_code == 2


def test_run_years_beyond_calendar(dataset_path):
    result = runner.invoke(app, [
        "run", "added_in_last_years", "-d", dataset_path, "-f", "json",
        "-p", "years=3000", "-p", "today=2021-10-01",
    ])
    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)) == 8


def test_run_writes_configured_logfile(tmp_path, dataset_path):
    logfile = tmp_path / "netflixreport.log"
    config = tmp_path / "netflixreport.yml"
    with open(config, "w") as file:
        yaml.safe_dump({"netflixreport": {
            "dataset_path": dataset_path,
            "logging": {"logfile": str(logfile), "loglevel": "INFO"},
        }}, file)

    result = runner.invoke(app, ["run", "count_by_type", "-c", str(config), "-f", "json"])
    logger.remove()  # flush and close the file sink

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)[0] == {"type": "Movie", "total": 6}
    contents = logfile.read_text()
    assert "dataset loaded: 10 titles" in contents
    assert "DEBUG" not in contents
