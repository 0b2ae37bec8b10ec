from __future__ import annotations

import logging
import threading
from typing import Sequence

from ..errors import NotFoundError
from ..venues.data_store import VenueStore
from .models import Recommendation, RecommendationRecord

logger = logging.getLogger(__name__)


class RecommendationStore:
    """Append-only recommendation history per group."""

    def __init__(self) -> None:
        self._records: list[RecommendationRecord] = []
        self._lock = threading.Lock()

    def append(self, record: RecommendationRecord) -> RecommendationRecord:
        with self._lock:
            self._records.append(record)
        return record

    def list_for_group(self, group_id: str) -> list[RecommendationRecord]:
        with self._lock:
            return [r for r in self._records if r.group_id == group_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def save_recommendations(
    store: RecommendationStore,
    venue_store: VenueStore,
    group_id: str,
    recommendations: Sequence[Recommendation],
    model_version: str | None = None,
) -> list[RecommendationRecord]:
    """Persist *recommendations*; picks whose venue no longer exists are skipped."""
    saved: list[RecommendationRecord] = []
    for rec in recommendations:
        try:
            venue_store.get(rec.venue_id)
        except NotFoundError:
            logger.warning(
                "Skipping recommendation for missing venue %s (group %s)",
                rec.venue_id, group_id,
            )
            continue

        saved.append(store.append(RecommendationRecord(
            group_id=group_id,
            venue_id=rec.venue_id,
            match_score=rec.match_score,
            reasoning=rec.reasoning,
            title=rec.title,
            description=rec.description,
            highlights=tuple(rec.highlights),
            model_version=model_version,
        )))
    return saved
