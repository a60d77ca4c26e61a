import os
from typing import Dict, Optional, Literal

import yaml
from loguru import logger
from pydantic import BaseModel, ValidationError, Field

CONFIG_PATH = os.environ.get(
    "NETFLIXREPORT_CONFIG",
    os.path.expanduser(os.path.join("~", ".config", "netflixreport.yml"))
)


OutputFormat = Literal["table", "json", "yaml"]


class Logging(BaseModel):
    logfile: Optional[str] = None
    loglevel: str = "WARNING"


class ReportConfig(BaseModel):
    # Location of the netflix_titles.csv dataset,
    # the command line --dataset option takes precedence.
    dataset_path: Optional[str] = None

    # keyword (case-insensitive substring of the description) -> category
    keyword_categories: Dict[str, str] = Field(
        default_factory=lambda: {"kill": "Bad", "violence": "Bad"}
    )
    fallback_category: str = "Good"

    output_format: OutputFormat = "table"

    logging: Optional[Logging] = None


class ConfigurationError(Exception):
    pass


def read_config(config_file: Optional[str] = None) -> ReportConfig:
    config_file = config_file if config_file else CONFIG_PATH
    try:
        logger.info(f'reading configuration file: {config_file}')
        with open(config_file, 'r') as cfgfile:
            o_config = yaml.load(cfgfile, Loader=yaml.SafeLoader)

        return ReportConfig(**(o_config['netflixreport'] or {}))
    except FileNotFoundError:
        raise ConfigurationError(
            f"Can't load configuration '{config_file}', file not found"
        )
    except (KeyError, TypeError, ValidationError):
        raise ConfigurationError(
            f"Can't load configuration '{config_file}', invalid config keys."
        )
    except Exception as e:
        raise ConfigurationError(
            f"Can't load configuration from '{config_file}', unexpected error {type(e)} "
        )


default_config = ReportConfig(
    dataset_path=os.path.abspath("netflix_titles.csv"),
    keyword_categories={
        # Any of these found in the description marks the title as "Bad".
        "kill": "Bad",
        "violence": "Bad",
    },
    fallback_category="Good",
    output_format="table",
    logging=Logging(
        logfile=None,
        loglevel="WARNING",
    )
)
