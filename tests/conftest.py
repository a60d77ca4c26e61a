import os
from datetime import date

import pytest

from netflixreport.lib.config import ReportConfig
from netflixreport.lib.load import load_titles
from netflixreport.lib.models import Title, TitleType
from netflixreport.lib.report import ReportEngine


@pytest.fixture(scope="session")
def default_config() -> ReportConfig:
    return ReportConfig()


@pytest.fixture(scope="session")
def test_folder():
    return os.path.abspath(os.path.join(
        os.path.dirname(__file__), "test_data"
    ))


@pytest.fixture(scope="session")
def dataset_path(test_folder):
    return os.path.join(test_folder, "netflix_titles.csv")


@pytest.fixture(scope="session")
def titles(dataset_path):
    return load_titles(dataset_path)


@pytest.fixture(scope="session")
def engine(titles, default_config) -> ReportEngine:
    return ReportEngine(titles, config=default_config)


@pytest.fixture(scope="session")
def today() -> date:
    return date(2021, 10, 1)


@pytest.fixture(scope="session")
def make_title():
    """Build a title with sensible defaults, for hand-built datasets."""
    def factory(show_id: str, type_: TitleType = TitleType.MOVIE, **kwargs) -> Title:
        kwargs.setdefault("title", f"Title {show_id}")
        kwargs.setdefault("release_year", 2020)
        return Title(id=show_id, type=type_, **kwargs)
    return factory
