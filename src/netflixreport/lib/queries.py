"""
The query library.

Every query is a plain function taking the loaded titles as its first argument,
followed by keyword parameters, and returning a list of result rows.
Queries never mutate the titles, so running one twice on the same data
gives the same rows.

Top-K rankings order by count descending and break ties by the ranked key
ascending (see `netflixreport.lib.utils.rank`).
"""
import inspect
from collections import Counter
from datetime import date
from itertools import combinations
from typing import Callable, Dict, List, Optional, Sequence, Tuple, get_type_hints

from loguru import logger
from pydantic import BaseModel, ConfigDict, NonNegativeInt, create_model

from netflixreport.lib.models import (
    Title,
    TitleType,
    TitleRow,
    TypeCount,
    TypeRating,
    CountryCount,
    GenreCount,
    ActorCount,
    DirectorCount,
    ActorPair,
    DurationRow,
    AddedRow,
    YearCount,
    MonthCount,
    YearShare,
    CategoryCount,
)
from netflixreport.lib.parse import ParseSkip, parse_duration, subtract_years
from netflixreport.lib.utils import rank, top_ties, percentage

Titles = Sequence[Title]

DEFAULT_KEYWORDS = {"kill": "Bad", "violence": "Bad"}
DEFAULT_CATEGORY = "Good"


class QueryError(Exception):
    pass


class DivisionByZero(QueryError):
    pass


class Query:

    def __init__(self, name: str, function: Callable):
        self.name = name
        self.function = function
        self.description = inspect.getdoc(function).splitlines()[0] if function.__doc__ else ""
        self.parameters = _parameters_model(name, function)

    def __call__(self, titles: Titles, **kwargs):
        return self.function(titles, **kwargs)

    def __repr__(self) -> str:
        return f"Query(name={self.name!r})"


def _parameters_model(name: str, function: Callable) -> type[BaseModel]:
    """Build a pydantic model out of everything but the first (titles) argument."""
    hints = get_type_hints(function, include_extras=True)
    fields = {}
    for param in list(inspect.signature(function).parameters.values())[1:]:
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param.name] = (hints.get(param.name, str), default)
    model_name = "".join(part.title() for part in name.split("_")) + "Parameters"
    return create_model(model_name, __config__=ConfigDict(extra="forbid"), **fields)


class Registry:

    mapping: Dict[str, Query]

    def __init__(self):
        self.mapping = {}

    def get(self, name: str) -> Optional[Query]:
        return self.mapping.get(name)

    def __iter__(self):
        return iter(self.mapping.values())

    def __len__(self):
        return len(self.mapping)

    def register(self, fn):
        self.mapping[fn.__name__] = Query(fn.__name__, fn)
        return fn


queries = Registry()


def _count(elements) -> Counter:
    return Counter(elements)


def _unnest(titles: Titles, field: str) -> Counter:
    return _count(element for title in titles for element in getattr(title, field))


def _contains(elements: Tuple[str, ...], value: str) -> bool:
    value = value.strip().lower()
    return any(element.lower() == value for element in elements)


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def _durations(titles: Titles, title_type: TitleType) -> List[Tuple[Title, int]]:
    result = []
    for title in titles:
        if title.type != title_type:
            continue
        try:
            result.append((title, parse_duration(title.duration)))
        except ParseSkip as e:
            logger.debug(f"{title.id}: {e}, skipped")
    return result


def _titles(titles: Titles) -> List[TitleRow]:
    return [TitleRow.of(title) for title in titles]


@queries.register
def count_by_type(titles: Titles) -> List[TypeCount]:
    """Number of movies vs TV shows."""
    counter = _count(title.type for title in titles)
    return [TypeCount(type=type_, total=total) for type_, total in rank(counter)]


@queries.register
def most_common_rating_per_type(titles: Titles) -> List[TypeRating]:
    """The most common rating for movies and TV shows, all ratings tied for the top included."""
    per_type: Dict[TitleType, Counter] = {}
    for title in titles:
        if title.rating is None:
            continue
        per_type.setdefault(title.type, Counter())[title.rating] += 1

    result = []
    for type_ in sorted(per_type, key=lambda t: t.value):
        for rating, total in top_ties(per_type[type_]):
            result.append(TypeRating(type=type_, rating=rating, total=total))
    return result


@queries.register
def released_in_year(titles: Titles, year: int, type: TitleType = TitleType.MOVIE) -> List[TitleRow]:
    """Titles of a type released in a specific year."""
    selected = [t for t in titles if t.release_year == year and t.type == type]
    return _titles(sorted(selected, key=lambda t: (t.title, t.id)))


@queries.register
def top_countries(titles: Titles, limit: NonNegativeInt = 5) -> List[CountryCount]:
    """Countries with the most content."""
    return [
        CountryCount(country=country, total=total)
        for country, total in rank(_unnest(titles, "country"), limit)
    ]


@queries.register
def longest_movie(titles: Titles) -> List[DurationRow]:
    """The longest movie(s) by minutes."""
    durations = _durations(titles, TitleType.MOVIE)
    if not durations:
        return []
    longest = max(minutes for _, minutes in durations)
    return [
        DurationRow(id=title.id, title=title.title, duration=title.duration, amount=minutes)
        for title, minutes in sorted(durations, key=lambda item: item[0].id)
        if minutes == longest
    ]


@queries.register
def added_in_last_years(titles: Titles, years: int = 5, today: Optional[date] = None) -> List[AddedRow]:
    """Content added to Netflix in the last N years."""
    since = subtract_years(_today(today), years)
    logger.debug(f"added_in_last_years: since {since}")
    selected = [t for t in titles if t.date_added is not None and t.date_added >= since]
    selected.sort(key=lambda t: t.id)
    selected.sort(key=lambda t: t.date_added, reverse=True)
    return [
        AddedRow(id=t.id, title=t.title, type=t.type, date_added=t.date_added)
        for t in selected
    ]


@queries.register
def titles_by_director(titles: Titles, director: str) -> List[TitleRow]:
    """Movies and TV shows by a director."""
    return _titles(t for t in titles if _contains(t.director, director))


@queries.register
def shows_with_more_seasons(titles: Titles, seasons: int = 5) -> List[DurationRow]:
    """TV shows with more than N seasons."""
    return [
        DurationRow(id=title.id, title=title.title, duration=title.duration, amount=amount)
        for title, amount in _durations(titles, TitleType.TV_SHOW)
        if amount > seasons
    ]


@queries.register
def count_by_genre(titles: Titles) -> List[GenreCount]:
    """Number of content items in each genre."""
    return [
        GenreCount(genre=genre, total=total)
        for genre, total in rank(_unnest(titles, "genres"))
    ]


@queries.register
def country_release_share(titles: Titles, country: str = "India", limit: NonNegativeInt = 5) -> List[YearShare]:
    """
    Release years with the highest share of a country's content.

    The share is the year's count divided by the country's total, in percent,
    rounded half-up to two decimals.
    """
    subset = [t for t in titles if _contains(t.country, country)]
    if not subset:
        raise DivisionByZero(f"No titles produced in '{country}', can't compute a share.")

    per_year = _count(t.release_year for t in subset)
    rows = [
        YearShare(year=year, total=total, share=percentage(total, len(subset)))
        for year, total in per_year.items()
    ]
    rows.sort(key=lambda row: (row.share, row.year), reverse=True)
    return rows[:limit]


@queries.register
def titles_in_genre(titles: Titles, genre: str = "Documentaries") -> List[TitleRow]:
    """All titles listed in a genre."""
    return _titles(t for t in titles if _contains(t.genres, genre))


@queries.register
def titles_without_director(titles: Titles) -> List[TitleRow]:
    """All titles without a director."""
    return _titles(t for t in titles if not t.director)


@queries.register
def actor_appearances(
        titles: Titles, actor: str, years: int = 10, today: Optional[date] = None
) -> List[TitleRow]:
    """Movies an actor appeared in, released in the last N years."""
    after = _today(today).year - years
    return _titles(
        t for t in titles
        if t.type == TitleType.MOVIE and t.release_year > after and _contains(t.cast, actor)
    )


@queries.register
def top_actors_in_country(titles: Titles, country: str = "India", limit: NonNegativeInt = 10) -> List[ActorCount]:
    """Actors appearing in the highest number of movies produced in a country."""
    movies = [t for t in titles if t.type == TitleType.MOVIE and _contains(t.country, country)]
    return [
        ActorCount(actor=actor, total=total)
        for actor, total in rank(_unnest(movies, "cast"), limit)
    ]


def classify(description: str, keywords: Dict[str, str], fallback: str) -> str:
    """The category of the first (non-blank) keyword found in the description, case-insensitive."""
    text = description.lower()
    for keyword, category in keywords.items():
        # a blank keyword would match every description
        if keyword.strip() and keyword.lower() in text:
            return category
    return fallback


@queries.register
def classify_by_keywords(
        titles: Titles,
        keywords: Optional[Dict[str, str]] = None,
        fallback: str = DEFAULT_CATEGORY,
) -> List[CategoryCount]:
    """Categorize content by keywords found in the description."""
    keywords = DEFAULT_KEYWORDS if keywords is None else keywords
    counter = _count(
        (classify(t.description, keywords, fallback), t.type) for t in titles
    )
    return [
        CategoryCount(category=category, type=type_, total=total)
        for (category, type_), total in sorted(counter.items(), key=lambda i: (i[0][0], i[0][1].value))
    ]


def actor_pairs(cast: Tuple[str, ...]):
    """Unordered pairs of distinct actors, each pair sorted by name."""
    return combinations(sorted(set(cast)), 2)


@queries.register
def top_actor_pairs(titles: Titles, limit: NonNegativeInt = 10) -> List[ActorPair]:
    """Actors appearing together most often."""
    counter = _count(pair for title in titles for pair in actor_pairs(title.cast))
    return [
        ActorPair(first=first, second=second, total=total)
        for (first, second), total in rank(counter, limit)
    ]


@queries.register
def top_directors(titles: Titles, limit: NonNegativeInt = 10) -> List[DirectorCount]:
    """Directors with the most titles."""
    return [
        DirectorCount(director=director, total=total)
        for director, total in rank(_unnest(titles, "director"), limit)
    ]


@queries.register
def added_per_year(titles: Titles) -> List[YearCount]:
    """Number of titles added to Netflix per year."""
    counter = _count(t.date_added.year for t in titles if t.date_added is not None)
    return [YearCount(year=year, total=total) for year, total in sorted(counter.items())]


@queries.register
def added_per_month(titles: Titles) -> List[MonthCount]:
    """Number of titles added to Netflix per calendar month, across all years."""
    counter = _count(t.date_added.month for t in titles if t.date_added is not None)
    return [MonthCount(month=month, total=total) for month, total in sorted(counter.items())]


@queries.register
def count_by_release_year(titles: Titles, limit: Optional[NonNegativeInt] = None) -> List[YearCount]:
    """Number of titles released per year, busiest years first."""
    counter = _count(t.release_year for t in titles)
    ranked = sorted(counter.items(), key=lambda item: (item[1], item[0]), reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [YearCount(year=year, total=total) for year, total in ranked]
