import re
from datetime import MAXYEAR, MINYEAR, date, datetime
from typing import Optional, Tuple

from loguru import logger


class ParseSkip(Exception):
    """A field of a row can't be parsed, the row is skipped by the query that needs it."""
    pass


DATE_ADDED_FORMAT = "%B %d, %Y"  # September 25, 2021

# Everything the CSV may hold in place of "no value".
BLANK_PATTERN = re.compile(r"^\s*$")

MULTI_VALUE_DELIMITER = ","


def is_blank(value: Optional[str]) -> bool:
    return value is None or bool(re.match(BLANK_PATTERN, value))


def clean(value: Optional[str]) -> Optional[str]:
    """Trim a scalar field, blank becomes None."""
    if is_blank(value):
        return None
    return value.strip()


def split_multi(value: Optional[str], delimiter: str = MULTI_VALUE_DELIMITER) -> Tuple[str, ...]:
    """
    Split a comma-joined field (director, cast, country, listed_in) into its elements.

    Each element is trimmed and blank elements are dropped, so an absent field
    (or one holding only delimiters) yields an empty tuple.

    >>> split_multi(" United States, India,")
    ('United States', 'India')
    """
    if is_blank(value):
        return ()
    return tuple(part.strip() for part in value.split(delimiter) if part.strip())


def parse_date_added(value: Optional[str]) -> date:
    """Parse 'Month DD, YYYY', raise ParseSkip if that's not possible."""
    if is_blank(value):
        raise ParseSkip("date_added is empty")
    try:
        return datetime.strptime(" ".join(value.split()), DATE_ADDED_FORMAT).date()
    except ValueError:
        raise ParseSkip(f"Can't parse date_added '{value}'")


def try_parse_date_added(value: Optional[str]) -> Optional[date]:
    try:
        return parse_date_added(value)
    except ParseSkip as e:
        if not is_blank(value):
            logger.debug(str(e))
        return None


def parse_duration(value: Optional[str]) -> int:
    """
    Extract the numeric prefix of a duration ('90 min', '3 Seasons').

    Split on the first whitespace and parse the leading token as an integer.
    """
    if is_blank(value):
        raise ParseSkip("duration is empty")
    head = value.strip().split(maxsplit=1)[0]
    try:
        return int(head)
    except ValueError:
        raise ParseSkip(f"No numeric prefix in duration '{value}'")


def subtract_years(day: date, years: int) -> date:
    """Calendar subtraction, February 29th falls back to the 28th.

    Results outside the supported calendar are clamped to date.min / date.max.
    """
    year = day.year - years
    if year < MINYEAR:
        return date.min
    if year > MAXYEAR:
        return date.max
    try:
        return day.replace(year=year)
    except ValueError:
        return day.replace(year=year, day=28)
