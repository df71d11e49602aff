import json
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

ALL_CATEGORIES = "all"
DEFAULT_CATEGORY = "general"

# (value, label) in display order
CATEGORIES = [
    ("ai", "AI & ML"),
    ("payment", "Payment"),
    ("email", "Email"),
    ("database", "Database"),
    ("analytics", "Analytics"),
    ("social", "Social"),
    ("general", "General"),
]
CATEGORY_VALUES = [value for value, _ in CATEGORIES]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_tag(raw: str) -> str:
    return raw.strip().lower()


def normalize_tags(raw_tags: List[str]) -> List[str]:
    tags: List[str] = []
    for raw in raw_tags:
        tag = normalize_tag(raw)
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _decode_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        value = value.strip() or 0
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        raise ValueError(f"Bad is_active value: {value!r}")


def _decode_tags(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        value = json.loads(value)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"Tags must be a list, got {type(value).__name__}")
    return value


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class AuthUser(BaseModel):
    id: str
    email: str | None = None
    display_name: str | None = None


class AuthState(BaseModel):
    user: AuthUser | None = None
    is_loading: bool = False


class _RecordFields(BaseModel):
    name: str
    description: str | None = None
    api_key: str
    category: str = DEFAULT_CATEGORY
    service_url: str | None = None
    expires_at: date | None = None
    last_used_at: datetime | None = None
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)

    @field_validator("last_used_at")
    @classmethod
    def last_used_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ApiKeyDraft(_RecordFields):
    """Unsaved record as submitted by the add dialog."""

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        if v not in CATEGORY_VALUES:
            raise ValueError(f"Unknown category: {v}")
        return v

    @property
    def is_complete(self) -> bool:
        return bool(self.name.strip()) and bool(self.api_key.strip())


class ApiKeyRecord(_RecordFields):
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @classmethod
    def from_wire(cls, row: dict) -> "ApiKeyRecord":
        """Builds a record from the facade's storage shape (0/1 flags, JSON tags)."""
        data = dict(row)
        data["is_active"] = _decode_bool(data.get("is_active", 1))
        data["tags"] = _decode_tags(data.get("tags"))
        for key in ("description", "service_url", "expires_at", "last_used_at"):
            if data.get(key) == "":
                data[key] = None
        return cls.model_validate(data)

    def to_wire(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description or None,
            "api_key": self.api_key,
            "category": self.category,
            "service_url": self.service_url or None,
            "expires_at": _iso(self.expires_at),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "last_used_at": _iso(self.last_used_at),
            "is_active": 1 if self.is_active else 0,
            "tags": json.dumps(self.tags),
        }


class ApiKeyUpdate(BaseModel):
    """Partial update. Only fields explicitly set are sent to the backend."""

    name: str | None = None
    description: str | None = None
    api_key: str | None = None
    category: str | None = None
    service_url: str | None = None
    expires_at: date | None = None
    last_used_at: datetime | None = None
    is_active: bool | None = None
    tags: List[str] | None = None

    @field_validator("name", "api_key")
    @classmethod
    def not_blank(cls, v: str | None) -> str | None:
        # 显式传入时不能为空 (包括 None)
        if v is None or not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str | None) -> str | None:
        if v is not None and v not in CATEGORY_VALUES:
            raise ValueError(f"Unknown category: {v}")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str] | None) -> List[str] | None:
        return normalize_tags(v) if v is not None else None

    def to_wire(self, updated_at: datetime) -> dict:
        fields = self.model_dump(exclude_unset=True)
        payload: dict[str, Any] = {}
        for key, value in fields.items():
            if key == "is_active":
                payload[key] = 1 if value else 0
            elif key == "tags":
                payload[key] = json.dumps(value or [])
            elif key in ("expires_at", "last_used_at"):
                payload[key] = _iso(value)
            elif key in ("description", "service_url"):
                payload[key] = value or None
            else:
                payload[key] = value
        payload["updated_at"] = updated_at.isoformat()
        return payload
