"""Timeline: the per-viewer feed materialized from pins and follows.

Components:
- TimelineEntry / TimelineItem / TimelinePage: Dataclasses
- TimelineConfig: Pydantic settings for backfill depth, paging, batching
- TimelineRepository: Bulk inserts, bulk deletes, and page reads
- to_waterline / from_waterline: Epoch-second cursor conversion

FanoutService (``src.timeline.fanout``) is the only writer.
TimelineService (``src.timeline.service``) serves reads.
"""

from src.timeline.config import TimelineConfig
from src.timeline.repository import TimelineRepository
from src.timeline.schemas import (
    TimelineEntry,
    TimelineItem,
    TimelinePage,
    from_waterline,
    to_waterline,
)

__all__ = [
    "TimelineConfig",
    "TimelineEntry",
    "TimelineItem",
    "TimelinePage",
    "TimelineRepository",
    "from_waterline",
    "to_waterline",
]
