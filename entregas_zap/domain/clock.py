"""Local time helpers

Timestamps are stored as naive UTC (datetime.utcnow defaults on the models);
everything shown to people or bucketed by day uses the building timezone.
"""
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from entregas_zap.config import settings


def _zone(tz: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz or settings.condo_timezone)


def local_now(tz: Optional[str] = None) -> datetime:
    return datetime.now(_zone(tz))


def to_local(value: datetime, tz: Optional[str] = None) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(_zone(tz))


def format_date(value: datetime) -> str:
    """pt-BR date, e.g. 05/03/2025"""
    return value.strftime("%d/%m/%Y")


def format_time(value: datetime) -> str:
    """pt-BR hour:minute, e.g. 14:07"""
    return value.strftime("%H:%M")


def day_start_utc(day: date, tz: Optional[str] = None) -> datetime:
    """Midnight of a local calendar day as naive UTC, for database filters"""
    local = datetime.combine(day, time.min, tzinfo=_zone(tz))
    return local.astimezone(timezone.utc).replace(tzinfo=None)
