"""
Container directory: resolves or creates the per-season storage container.

Resolution policy
- Containers are looked up by the metadata filter {applicationId, season}.
- When several containers match, the last one in backend enumeration order is active.
  Records in the other containers for that season are not visible to scans.
- resolve() creates a container tagged with the season's ContainerMetadata when none
  matches; find() never creates.

Concurrency
- By default resolve() is not serialized: two callers that both observe "no container yet"
  for a season will each create one. The last-enumerated tie-break keeps reads consistent
  afterwards.
- With StorageSettings.serialize_container_creation, resolve() holds a per-season lock so
  that concurrent callers in this process create at most one container per season.

Errors
- Backend errors propagate verbatim; there is no retry.
"""

from __future__ import annotations

import logging
import threading

from zorrito.core.schema import ContainerMetadata
from zorrito.core.season import validate_season
from zorrito.core.typing import ContainerId, Season

from .client import BackendHandle
from .config import StorageSettings

logger = logging.getLogger(__name__)


class ContainerDirectory:
    """
    Lookup and lazy creation of season containers.

    Args:
        settings (StorageSettings): Application identity and serialization policy.
        handle (BackendHandle): Shared backend handle.
    """

    def __init__(self, settings: StorageSettings, handle: BackendHandle) -> None:
        self.settings = settings
        self._handle = handle
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def container_metadata(self, season: str) -> ContainerMetadata:
        """Metadata stamped on a newly created container for season."""
        return ContainerMetadata(
            application_id=self.settings.application_id,
            application_url=self.settings.application_url,
            environment=self.settings.environment,
            network=self.settings.network,
            season=validate_season(season),
            version=self.settings.game_version,
        )

    def find(self, season: str) -> ContainerId | None:
        """
        Return the active container for season, or None if the season has none.

        Raises:
            ValidationError: If season is malformed.
            BackendError: Propagated from the backend.
        """
        season = validate_season(season)
        metadata_filter = {"applicationId": self.settings.application_id, "season": season}
        matches = list(self._handle.get().list_containers(metadata_filter))
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "season %s has %d containers %s; using the last one",
                season,
                len(matches),
                [m.container_id for m in matches],
            )
        return ContainerId(matches[-1].container_id)

    def resolve(self, season: str) -> ContainerId:
        """
        Return the active container for season, creating one if none exists.

        Raises:
            ValidationError: If season is malformed.
            BackendError: Propagated from the backend.
        """
        season = validate_season(season)
        if self.settings.serialize_container_creation:
            with self._season_lock(season):
                return self._find_or_create(season)
        return self._find_or_create(season)

    def _find_or_create(self, season: Season) -> ContainerId:
        existing = self.find(season)
        if existing is not None:
            return existing
        metadata = self.container_metadata(season).to_metadata()
        container_id = self._handle.get().create_container(metadata)
        logger.info("created container %s for season %s", container_id, season)
        return ContainerId(container_id)

    def _season_lock(self, season: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(season)
            if lock is None:
                lock = self._locks[season] = threading.Lock()
            return lock
