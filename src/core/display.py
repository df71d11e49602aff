import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import urlparse

from .models import DEFAULT_CATEGORY, ApiKeyRecord, AuthUser, utcnow

MASK_CHAR = "•"
VISIBLE_EDGE = 4
EXPIRING_SOON_DAYS = 30

# (background, text)
CATEGORY_COLORS = {
    "ai": ("purple50", "purple800"),
    "payment": ("green50", "green800"),
    "email": ("blue50", "blue800"),
    "database": ("orange50", "orange800"),
    "analytics": ("pink50", "pink800"),
    "social": ("indigo50", "indigo800"),
    "general": ("grey100", "grey800"),
}


def category_colors(category: str) -> tuple[str, str]:
    return CATEGORY_COLORS.get(category, CATEGORY_COLORS[DEFAULT_CATEGORY])


class ExpiryStatus(Enum):
    EXPIRED = "expired"
    EXPIRING = "expiring"
    WARNING = "warning"
    GOOD = "good"


EXPIRY_COLORS = {
    ExpiryStatus.EXPIRED: "red600",
    ExpiryStatus.EXPIRING: "red600",
    ExpiryStatus.WARNING: "amber700",
    ExpiryStatus.GOOD: "green600",
}


@dataclass(frozen=True)
class ExpiryInfo:
    status: ExpiryStatus
    days: int

    @property
    def text(self) -> str:
        if self.status is ExpiryStatus.EXPIRED:
            return "Expired"
        return f"Expires in {self.days} days"

    @property
    def color(self) -> str:
        return EXPIRY_COLORS[self.status]


@dataclass(frozen=True)
class GridStats:
    total: int
    active: int
    expiring_soon: int
    categories: int


def mask_api_key(key: str, filler: str = MASK_CHAR) -> str:
    if len(key) <= VISIBLE_EDGE * 2:
        return key
    return key[:VISIBLE_EDGE] + filler * (len(key) - VISIBLE_EDGE * 2) + key[-VISIBLE_EDGE:]


def expiry_moment(expires_at: date) -> datetime:
    # a bare date expires at its UTC midnight
    return datetime.combine(expires_at, time.min, tzinfo=timezone.utc)


def days_until(expires_at: date, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    delta = expiry_moment(expires_at) - now
    return math.ceil(delta.total_seconds() / 86400)


def expiry_status(expires_at: Optional[date], now: Optional[datetime] = None) -> Optional[ExpiryInfo]:
    """Classifies an optional expiry date; ``None`` when the key never expires."""
    if expires_at is None:
        return None
    days = days_until(expires_at, now)
    if days < 0:
        status = ExpiryStatus.EXPIRED
    elif days <= 7:
        status = ExpiryStatus.EXPIRING
    elif days <= EXPIRING_SOON_DAYS:
        status = ExpiryStatus.WARNING
    else:
        status = ExpiryStatus.GOOD
    return ExpiryInfo(status=status, days=days)


def is_expiring_soon(record: ApiKeyRecord, now: Optional[datetime] = None) -> bool:
    if record.expires_at is None:
        return False
    now = now or utcnow()
    return expiry_moment(record.expires_at) <= now + timedelta(days=EXPIRING_SOON_DAYS)


def compute_stats(records: Iterable[ApiKeyRecord], now: Optional[datetime] = None) -> GridStats:
    records = list(records)
    now = now or utcnow()
    return GridStats(
        total=len(records),
        active=sum(1 for r in records if r.is_active),
        expiring_soon=sum(1 for r in records if is_expiring_soon(r, now)),
        categories=len({r.category for r in records}),
    )


def user_initials(user: Optional[AuthUser]) -> str:
    if user and user.display_name and user.display_name.strip():
        return "".join(part[0] for part in user.display_name.split()).upper()
    if user and user.email:
        return user.email[:2].upper()
    return "U"


def service_hostname(url: str) -> str:
    parsed = urlparse(url if "://" in url else f"https://{url}")
    return parsed.hostname or url


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def time_distance(seconds: float) -> str:
    """Rough, human sized distance: "less than a minute", "about 3 hours", "5 days" ..."""
    minutes = round(abs(seconds) / 60)
    if minutes < 1:
        return "less than a minute"
    if minutes < 45:
        return _plural(minutes, "minute")
    if minutes < 90:
        return "about 1 hour"
    if minutes < 24 * 60:
        return f"about {_plural(round(minutes / 60), 'hour')}"
    if minutes < 42 * 60:
        return "1 day"
    if minutes < 30 * 24 * 60:
        return _plural(round(minutes / (24 * 60)), "day")
    if minutes < 60 * 24 * 60:
        return f"about {_plural(round(minutes / (30 * 24 * 60)), 'month')}"
    months = minutes // (30 * 24 * 60)
    if months < 12:
        return _plural(months, "month")
    years, rest = divmod(months, 12)
    if rest < 3:
        return f"about {_plural(years, 'year')}"
    if rest < 9:
        return f"over {_plural(years, 'year')}"
    return f"almost {_plural(years + 1, 'year')}"


def format_last_used(value: datetime, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    seconds = (now - value).total_seconds()
    distance = time_distance(seconds)
    return f"{distance} ago" if seconds >= 0 else f"in {distance}"
