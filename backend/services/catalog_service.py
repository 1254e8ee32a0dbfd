"""
Satellite catalog service.

Loads TLE feeds for several categories, tags each element set with its
category and keeps the merged result as an immutable snapshot. A source that
fails to download is logged and skipped; the others still load.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from config import Config
from models.orbital import OrbitalElementSet
from services.orbit_service import OrbitService, orbit_service
from services.tle_service import TLEService, tle_service
from utils.time_util import utc_now

logger = logging.getLogger(__name__)


class CatalogStatus(str, Enum):
    LOADING = 'loading'
    EMPTY = 'empty'
    POPULATED = 'populated'


@dataclass(frozen=True)
class TLESource:
    """One feed: category label, URL and optional cap on records taken from it."""
    name: str
    url: str
    max_count: Optional[int] = None


@dataclass(frozen=True)
class SatelliteCatalog:
    """Merged catalog snapshot. Order follows source order; it carries no meaning."""
    element_sets: Tuple[OrbitalElementSet, ...] = ()
    loaded_at: Optional[datetime] = None
    failed_sources: Tuple[str, ...] = ()
    source_counts: Dict[str, int] = field(default_factory=dict)

    def __len__(self):
        return len(self.element_sets)

    def display(self, max_count: Optional[int] = None) -> List[OrbitalElementSet]:
        """Element sets to show, capped by the display setting (no re-fetch)."""
        if max_count is None:
            return list(self.element_sets)
        return list(self.element_sets[:max(0, max_count)])

    def find(self, norad_id: str) -> Optional[OrbitalElementSet]:
        norad_id = str(norad_id).strip()
        for element_set in self.element_sets:
            if element_set.catalog_number == norad_id:
                return element_set
        return None

    def find_by_name(self, name: str) -> Optional[OrbitalElementSet]:
        for element_set in self.element_sets:
            if element_set.name == name:
                return element_set
        return None

    def by_category(self) -> Dict[str, List[OrbitalElementSet]]:
        grouped = {}
        for element_set in self.element_sets:
            grouped.setdefault(element_set.category, []).append(element_set)
        return grouped


class CatalogService:
    """
    Service owning the in-memory satellite catalog.
    """

    def __init__(self, tle: TLEService = None, orbits: OrbitService = None):
        self.tle = tle or tle_service
        self.orbits = orbits or orbit_service
        self._catalog: Optional[SatelliteCatalog] = None
        self._loading = False
        self._lock = Lock()

    # ==================== Sources ====================

    def default_sources(self) -> List[TLESource]:
        """Sources configured in Config.TLE_SOURCES."""
        return [
            TLESource(name=label, url=self.tle.get_celestrak_url(group), max_count=cap)
            for label, group, cap in Config.TLE_SOURCES
        ]

    # ==================== Loading ====================

    def fetch_catalog(self, sources: Sequence[TLESource] = None) -> SatelliteCatalog:
        """
        Fetch and merge every source into a new catalog snapshot.

        Each source is fetched independently; a failed source is recorded in
        failed_sources and does not stop the others.
        """
        if sources is None:
            sources = self.default_sources()

        element_sets = []
        failed = []
        counts = {}

        for source in sources:
            try:
                tle_text = self.tle.fetch_tle_text(source.url)
            except requests.RequestException as e:
                logger.warning(f"Failed to fetch {source.name} from {source.url}: {e}")
                failed.append(source.name)
                continue

            parsed = self.tle.parse_tle_text(tle_text, category=source.name)
            if source.max_count is not None:
                parsed = parsed[:max(0, source.max_count)]

            counts[source.name] = len(parsed)
            element_sets.extend(parsed)
            logger.info(f"Loaded {len(parsed)} satellites from {source.name}")

        if failed and len(failed) == len(sources):
            logger.error("All TLE sources failed; catalog is empty")

        return SatelliteCatalog(
            element_sets=tuple(element_sets),
            loaded_at=utc_now(),
            failed_sources=tuple(failed),
            source_counts=counts,
        )

    def refresh(self, sources: Sequence[TLESource] = None) -> SatelliteCatalog:
        """
        Reload the catalog and swap it in. Compiled SGP4 records belong to
        the previous snapshot and are dropped.
        """
        with self._lock:
            self._loading = True
        try:
            catalog = self.fetch_catalog(sources)
        finally:
            with self._lock:
                self._loading = False

        with self._lock:
            self._catalog = catalog
        self.orbits.clear_cache()

        logger.info(
            f"Catalog refreshed: {len(catalog)} satellites, "
            f"{len(catalog.failed_sources)} failed sources"
        )
        return catalog

    def set_catalog(self, catalog: SatelliteCatalog):
        """Install a prebuilt snapshot (used for seeding and tests)."""
        with self._lock:
            self._catalog = catalog
        self.orbits.clear_cache()

    # ==================== Queries ====================

    @property
    def catalog(self) -> SatelliteCatalog:
        """Current snapshot (empty before the first load)."""
        return self._catalog or SatelliteCatalog()

    @property
    def status(self) -> CatalogStatus:
        """
        loading while no snapshot exists yet (or the first load is running),
        then empty/populated.
        """
        catalog = self._catalog
        if catalog is None:
            return CatalogStatus.LOADING
        if len(catalog) == 0:
            return CatalogStatus.EMPTY
        return CatalogStatus.POPULATED

    @property
    def is_loading(self) -> bool:
        return self._loading

    def get_satellites(self, max_count: int = None, category: str = None) -> List[OrbitalElementSet]:
        """Displayable satellites, optionally restricted to one category."""
        element_sets = self.catalog.display()
        if category:
            element_sets = [s for s in element_sets if s.category == category]
        if max_count is not None:
            element_sets = element_sets[:max(0, max_count)]
        return element_sets

    def find(self, norad_id: str) -> Optional[OrbitalElementSet]:
        return self.catalog.find(norad_id)


# Singleton instance
catalog_service = CatalogService()
