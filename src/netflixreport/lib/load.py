import os
from typing import Any, Dict, Tuple

import pandas as pd
from loguru import logger
from pydantic import ValidationError

from netflixreport.lib.models import Title
from netflixreport.lib.parse import clean, split_multi, try_parse_date_added


class LoadError(Exception):
    pass


# The dataset columns, in schema order.
REQUIRED_COLUMNS = (
    "show_id",
    "type",
    "title",
    "director",
    "cast",
    "country",
    "date_added",
    "release_year",
    "rating",
    "duration",
    "listed_in",
    "description",
)


def _read_csv(path: str) -> pd.DataFrame:
    if not os.path.isfile(path):
        raise LoadError(f"Can't load dataset '{path}', file not found")
    try:
        # Only truly empty cells are missing values, titles such as "NA" or "None" are real data.
        df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""], encoding="utf-8")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
        raise LoadError(f"Can't read dataset '{path}': {e}")

    df.columns = [str(column).strip() for column in df.columns]
    if missing := [column for column in REQUIRED_COLUMNS if column not in df.columns]:
        raise LoadError(f"Dataset '{path}' is missing required column(s): {', '.join(missing)}")

    # NaN -> None, so that the row dicts hold plain strings or None.
    return df.astype(object).where(df.notna(), None)


def _to_release_year(record: Dict[str, Any]) -> int:
    value = clean(record["release_year"])
    try:
        return int(value)
    except (TypeError, ValueError):
        raise LoadError(
            f"Row '{record['show_id']}': release_year '{record['release_year']}' is not an integer"
        )


def to_title(record: Dict[str, Any]) -> Title:
    """Convert a single CSV record into a Title."""
    show_id = clean(record["show_id"])
    if not show_id:
        raise LoadError(f"Row without show_id: {record}")

    try:
        return Title(
            id=show_id,
            type=clean(record["type"]),
            title=clean(record["title"]) or "",
            director=split_multi(record["director"]),
            cast=split_multi(record["cast"]),
            country=split_multi(record["country"]),
            date_added=try_parse_date_added(record["date_added"]),
            date_added_raw=clean(record["date_added"]),
            release_year=_to_release_year(record),
            rating=clean(record["rating"]),
            duration=clean(record["duration"]),
            genres=split_multi(record["listed_in"]),
            description=clean(record["description"]) or "",
        )
    except ValidationError as e:
        raise LoadError(f"Row '{show_id}' can't be loaded: {e}")


def load_titles(path: str) -> Tuple[Title, ...]:
    """
    Load the dataset once into an immutable tuple of titles.

    :param path: path to the netflix titles CSV file
    :raises LoadError: source unreadable, required column missing,
        release_year not an integer or duplicate show_id
    """
    path = os.path.abspath(os.path.expanduser(path))
    logger.info(f"loading dataset: {path}")

    df = _read_csv(path)
    titles = []
    seen = set()
    for record in df.to_dict(orient="records"):
        title = to_title(record)
        if title.id in seen:
            raise LoadError(f"Duplicate show_id '{title.id}' in '{path}'")
        seen.add(title.id)
        titles.append(title)

    unparsed = sum(1 for t in titles if t.date_added_raw and t.date_added is None)
    if unparsed:
        logger.warning(f"{unparsed} row(s) with unparseable date_added, excluded from date queries")

    logger.info(f"dataset loaded: {len(titles)} titles, {len(df.columns)} columns")
    return tuple(titles)
