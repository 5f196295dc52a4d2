"""Lazy per-tab loading of statistics aggregates."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .gateway.base import ApiResult, StatisticsGateway


logger = logging.getLogger(__name__)

DETAILED = "detailed"
TABLE = "table"
GLOBAL = "global"
CUSTOM = "custom"

TABS = {
    "demographics": "Démographie",
    "questions": "Questions",
    "table": "Tableau",
    "global": "Global",
    "custom": "Custom",
    "radar": "Radar",
}

TAB_SOURCES = {
    "demographics": (DETAILED,),
    "questions": (DETAILED,),
    "table": (TABLE,),
    "global": (GLOBAL,),
    "custom": (CUSTOM, GLOBAL),
    "radar": (GLOBAL, CUSTOM),
}

TAB_FAILURE_NOTICES = {
    "demographics": "Failed to load statistics",
    "questions": "Failed to load statistics",
    "table": "Échec du chargement des données du tableau",
    "global": "Échec du chargement des données globales",
    "custom": "Échec du chargement des données personnalisées",
    "radar": "Échec du chargement des données radar",
}

DEFAULT_TAB = "demographics"


@dataclass
class TabView:
    """Data for one activated tab; empty when any source failed."""
    tab: str
    sources: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def empty(self) -> bool:
        return self.error is not None or not self.sources


class StatisticsCache:
    """Per-browser-session cache keyed by tab id.

    A tab loads its missing sources on first activation and reuses them
    afterwards; sources are shared between tabs. Failures are not cached, so
    activating the tab again retries. ``invalidate`` is the hard refresh.
    """

    def __init__(self):
        self._sources: dict[str, Any] = {}
        self._tabs: dict[str, TabView] = {}

    def _loader(self, gateway: StatisticsGateway, source: str):
        return {
            DETAILED: gateway.fetch_detailed_stats,
            TABLE: gateway.fetch_table_stats,
            GLOBAL: gateway.fetch_global_stats,
            CUSTOM: gateway.fetch_custom_stats,
        }[source]

    def is_loaded(self, tab: str) -> bool:
        return tab in self._tabs

    async def activate(self, tab: str, gateway: StatisticsGateway, token: str) -> TabView:
        """Return the tab's data, loading whatever is still missing."""
        if tab not in TAB_SOURCES:
            raise KeyError(f"Unknown statistics tab: {tab}")
        if tab in self._tabs:
            return self._tabs[tab]

        needed = TAB_SOURCES[tab]
        missing = [source for source in needed if source not in self._sources]
        if missing:
            results: list[ApiResult] = await asyncio.gather(
                *(self._loader(gateway, source)(token) for source in missing)
            )
            failure = None
            for source, result in zip(missing, results):
                if not result.ok:
                    failure = failure or result.error.message
                elif not isinstance(result.data, dict):
                    # Aggregates are always objects; an empty or odd body is no data.
                    failure = failure or f"{source} statistics body is not an object"
                else:
                    self._sources[source] = result.data
            if failure is not None:
                logger.warning("Statistics tab %s failed: %s", tab, failure)
                return TabView(tab=tab, error=TAB_FAILURE_NOTICES[tab])

        view = TabView(tab=tab, sources={source: self._sources[source] for source in needed})
        self._tabs[tab] = view
        return view

    def invalidate(self) -> None:
        self._sources.clear()
        self._tabs.clear()
