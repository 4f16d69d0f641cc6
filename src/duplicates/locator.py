# src/duplicates/locator.py — v2
"""Candidate locator: the stored documents a new file is compared against.

The temporal window is anchored on the current time, not on the new
document's creation time, so re-analysing an old document later still
looks at the same "recent" slice of the store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from docintel.core.errors import InvalidInput, StorageUnavailable
from docintel.core.models import DuplicateScope, StoredDocument
from docintel.storage.base_document_store import BaseDocumentStore
from docintel.storage.models import CandidateFilters, CandidateScope

logger = logging.getLogger(__name__)

MIN_TOLERANCE_DAYS = 1
MAX_TOLERANCE_DAYS = 365


def resolve_scope(kind: DuplicateScope, company_id: str, user_id: str) -> CandidateScope:
    """Company-wide or uploader-only scope, never both."""
    owner = company_id if kind == "company" else user_id
    if not owner:
        raise InvalidInput(f"Missing {kind} identity for duplicate scope")
    return CandidateScope(kind=kind, owner_id=owner)


class CandidateLocator:
    """Fetch the scoped, time-bounded candidate set for one duplicate check."""

    def __init__(self, store: BaseDocumentStore, candidate_limit: int = 500) -> None:
        self._store = store
        self._candidate_limit = candidate_limit

    async def find_candidates(
        self,
        scope: CandidateScope,
        temporal_tolerance_days: int,
        include_archived: bool = False,
        exclude_id: str | None = None,
        now: datetime | None = None,
    ) -> list[StoredDocument]:
        """Return candidates created within the window, newest first.

        Raises:
            InvalidInput: If the tolerance is outside 1..365 days.
            StorageUnavailable: If the backing store cannot be queried.
        """
        if not MIN_TOLERANCE_DAYS <= temporal_tolerance_days <= MAX_TOLERANCE_DAYS:
            raise InvalidInput(
                f"temporal_tolerance_days must be within "
                f"{MIN_TOLERANCE_DAYS}..{MAX_TOLERANCE_DAYS}, got {temporal_tolerance_days}"
            )

        now = now or datetime.now(timezone.utc)
        filters = CandidateFilters(
            include_archived=include_archived,
            created_after=now - timedelta(days=temporal_tolerance_days),
            exclude_id=exclude_id,
            limit=self._candidate_limit,
        )

        try:
            rows = await self._store.get_candidates(scope, filters)
        except (StorageUnavailable, InvalidInput):
            raise
        except Exception as e:
            raise StorageUnavailable(
                f"Candidate lookup failed: {type(e).__name__}: {e}"
            ) from e

        # Backends may filter loosely; the scope and window are enforced here too.
        candidates = [d for d in rows if scope.owns(d) and filters.accepts(d)]
        logger.debug(
            "Located %d candidates (scope=%s, window=%dd, archived=%s)",
            len(candidates), scope.kind, temporal_tolerance_days, include_archived,
        )
        return candidates
