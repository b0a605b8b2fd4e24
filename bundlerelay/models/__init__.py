"""SQLAlchemy models. Import here so Alembic and create_all see every table."""

from bundlerelay.models.bundle import Bundle
from bundlerelay.models.device_event import DeviceEvent

__all__ = ["Bundle", "DeviceEvent"]
