"""Timeline query service: waterlined, newest-first feed reads."""

import logging
import time

from src.errors import ValidationError
from src.observability.metrics import get_metrics
from src.timeline.config import TimelineConfig
from src.timeline.repository import TimelineRepository
from src.timeline.schemas import (
    MAX_WATERLINE,
    TimelinePage,
    first_instant_after,
    to_waterline,
)

logger = logging.getLogger(__name__)


class TimelineService:
    def __init__(
        self,
        timeline_repo: TimelineRepository,
        config: TimelineConfig | None = None,
    ) -> None:
        self._timeline = timeline_repo
        self._config = config or TimelineConfig()

    async def get_timeline(
        self,
        viewer_id: str,
        since: int = 0,
        limit: int | None = None,
    ) -> TimelinePage:
        """Get entries visible to ``viewer_id`` created strictly after ``since``.

        Args:
            viewer_id: Account whose feed is read.
            since: Waterline in epoch seconds; 0 reads from the start.
            limit: Page size, clamped to ``max_page_size``.

        Returns:
            The page, newest first. Its waterline is the newest entry's
            ``created_at`` in epoch seconds, or ``since`` unchanged when
            nothing matched. Unreturned entries in the same second as the
            waterline are skipped by the next poll.
        """
        if since < 0:
            raise ValidationError("since must be non-negative", error="Invalid since")
        if since > MAX_WATERLINE:
            raise ValidationError(
                f"since must be at most {MAX_WATERLINE}", error="Invalid since"
            )
        if limit is None:
            limit = self._config.default_page_size
        if limit < 1:
            raise ValidationError("limit must be positive", error="Invalid limit")
        limit = min(limit, self._config.max_page_size)

        start = time.perf_counter()
        items = await self._timeline.fetch_page(
            viewer_id, first_instant_after(since), limit
        )
        get_metrics().record_timeline_read(time.perf_counter() - start)

        waterline = to_waterline(items[0].timeline_created_at) if items else since
        return TimelinePage(items=items, waterline=waterline)
