from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from netflixreport.lib.config import ReportConfig
from netflixreport.lib.load import load_titles
from netflixreport.lib.models import Row, Title
from netflixreport.lib.queries import Query, Registry, queries as default_queries


class ReportError(Exception):
    pass


class QueryNotFoundError(ReportError):
    pass


class QueryParameterError(ReportError):
    pass


class ReportEngine:
    """Holds the loaded (read-only) titles and runs the registered queries against them."""

    def __init__(
            self,
            titles: Sequence[Title],
            config: Optional[ReportConfig] = None,
            registry: Registry = default_queries,
    ):
        self.titles = tuple(titles)
        self.config = config or ReportConfig()
        self.registry = registry

    @classmethod
    def from_csv(cls, path: str, config: Optional[ReportConfig] = None):
        return cls(load_titles(path), config=config)

    @classmethod
    def from_config(cls, config: ReportConfig):
        if not config.dataset_path:
            raise ReportError("No dataset path configured.")
        return cls.from_csv(config.dataset_path, config=config)

    @property
    def queries(self) -> Dict[str, Query]:
        return {query.name: query for query in self.registry}

    def _defaults(self) -> Dict[str, Any]:
        """Query parameters taken from the configuration unless given explicitly."""
        return {
            "keywords": self.config.keyword_categories,
            "fallback": self.config.fallback_category,
        }

    def get(self, name: str) -> Query:
        if query := self.registry.get(name):
            return query
        raise QueryNotFoundError(
            f"Unknown query '{name}', available: {', '.join(self.queries)}"
        )

    def run(self, name: str, **params) -> List[Row]:
        query = self.get(name)

        for key, value in self._defaults().items():
            if key in query.parameters.model_fields and key not in params:
                params[key] = value

        try:
            parsed = query.parameters(**params)
        except ValidationError as e:
            raise QueryParameterError(f"Invalid parameters for '{name}': {e}")

        logger.debug(f"running {name} with {dict(parsed)} over {len(self.titles)} titles")
        rows = query(self.titles, **dict(parsed))
        logger.debug(f"{name}: {len(rows)} row(s)")
        return rows
