from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict


class TitleType(str, Enum):
    MOVIE = "Movie"
    TV_SHOW = "TV Show"


class Title(BaseModel):
    """A single row of the dataset, immutable once loaded."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: TitleType
    title: str
    director: Tuple[str, ...] = ()
    cast: Tuple[str, ...] = ()
    country: Tuple[str, ...] = ()
    date_added: Optional[date] = None
    date_added_raw: Optional[str] = None
    release_year: int
    rating: Optional[str] = None
    duration: Optional[str] = None
    genres: Tuple[str, ...] = ()
    description: str = ""


# Query result rows.

class Row(BaseModel):
    model_config = ConfigDict(frozen=True)


class TitleRow(Row):
    id: str
    title: str
    type: TitleType
    release_year: int

    @classmethod
    def of(cls, title: Title) -> "TitleRow":
        return cls(id=title.id, title=title.title, type=title.type, release_year=title.release_year)


class TypeCount(Row):
    type: TitleType
    total: int


class TypeRating(Row):
    type: TitleType
    rating: str
    total: int


class CountryCount(Row):
    country: str
    total: int


class GenreCount(Row):
    genre: str
    total: int


class ActorCount(Row):
    actor: str
    total: int


class DirectorCount(Row):
    director: str
    total: int


class ActorPair(Row):
    first: str
    second: str
    total: int


class DurationRow(Row):
    id: str
    title: str
    duration: str
    amount: int  # minutes for movies, seasons for TV shows


class AddedRow(Row):
    id: str
    title: str
    type: TitleType
    date_added: date


class YearCount(Row):
    year: int
    total: int


class MonthCount(Row):
    month: int
    total: int


class YearShare(Row):
    year: int
    total: int
    share: Decimal


class CategoryCount(Row):
    category: str
    type: TitleType
    total: int
