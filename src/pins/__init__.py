"""Pin store: geotagged photo posts owned by one account.

Components:
- Pin: Dataclass mapping to the pins table
- PinConfig: Pydantic settings for listing limits
- PinRepository: CRUD operations for pin persistence

PinService (``src.pins.service``) adds validation and triggers timeline
fan-out on create.
"""

from src.pins.config import PinConfig
from src.pins.repository import PinRepository
from src.pins.schemas import Pin

__all__ = [
    "Pin",
    "PinConfig",
    "PinRepository",
]
