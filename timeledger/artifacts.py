"""Artifacts (work products) and their links to time entries."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from timeledger import store
from timeledger.db import LedgerDB
from timeledger.errors import AlreadyExists, InvalidInput, NotFound
from timeledger.models import Artifact, parse_id, parse_optional_id, require_name, utc_now

logger = logging.getLogger(__name__)


class ArtifactService:
    def __init__(self, db: LedgerDB, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def create(
        self,
        name: str,
        artifact_type: str,
        reference: str | None = None,
        metadata: Any = None,
        entry_id: str | None = None,
    ) -> Artifact:
        """Create an artifact, optionally linking it to an entry in the same operation."""
        require_name(name, "Artifact name")
        require_name(artifact_type, "Artifact type")
        eid = parse_optional_id(entry_id, "entry UUID")
        artifact = Artifact.new(name, artifact_type, reference, metadata, now=self.clock())

        with self.db.transaction() as conn:
            if eid is not None and not store.exists(conn, store.ENTRIES, eid):
                raise NotFound(f"Entry with id {eid} not found")
            store.insert_row(conn, store.ARTIFACTS, artifact.to_row())
            if eid is not None:
                store.insert_link(conn, eid, artifact.id)

        logger.info("Created artifact %s (%s)", artifact.id, artifact.artifact_type)
        return artifact

    def get(self, artifact_id: str) -> Artifact:
        aid = parse_id(artifact_id)
        with self.db.transaction() as conn:
            artifact = store.fetch_artifact(conn, aid)
        if artifact is None:
            raise NotFound(f"Artifact with id {aid} not found")
        return artifact

    def list(self, limit: int | None = None) -> list[Artifact]:
        if limit is not None and (not isinstance(limit, int) or limit < 0):
            raise InvalidInput(f"Invalid limit: {limit}")
        with self.db.transaction() as conn:
            return store.fetch_artifacts(conn, limit=limit)

    def link(self, entry_id: str, artifact_id: str) -> None:
        """Link an artifact to an entry. A pair can only be linked once."""
        eid = parse_id(entry_id, "entry UUID")
        aid = parse_id(artifact_id, "artifact UUID")
        with self.db.transaction() as conn:
            if not store.exists(conn, store.ARTIFACTS, aid):
                raise NotFound(f"Artifact with id {aid} not found")
            if not store.exists(conn, store.ENTRIES, eid):
                raise NotFound(f"Entry with id {eid} not found")
            if store.link_exists(conn, eid, aid):
                raise AlreadyExists(f"Artifact {aid} is already linked to entry {eid}")
            store.insert_link(conn, eid, aid)

    def unlink(self, entry_id: str, artifact_id: str) -> None:
        eid = parse_id(entry_id, "entry UUID")
        aid = parse_id(artifact_id, "artifact UUID")
        with self.db.transaction() as conn:
            if not store.delete_link(conn, eid, aid):
                raise NotFound("Link between entry and artifact not found")

    def delete(self, artifact_id: str) -> None:
        """Delete an artifact and every link pointing at it."""
        aid = parse_id(artifact_id)
        with self.db.transaction() as conn:
            if not store.exists(conn, store.ARTIFACTS, aid):
                raise NotFound(f"Artifact with id {aid} not found")
            store.delete_links_for_artifact(conn, aid)
            store.delete_row(conn, store.ARTIFACTS, aid)
        logger.info("Deleted artifact %s", aid)
