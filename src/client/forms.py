from datetime import date
from typing import Dict, List, Optional

from src.core.models import DEFAULT_CATEGORY, ApiKeyDraft, ApiKeyRecord, ApiKeyUpdate, normalize_tag


class DraftForm:
    """
    Form state of the add/edit dialog.

    Kept apart from the controller until submit, so a failed submit leaves
    everything the user typed in place.
    """

    def __init__(self, record: Optional[ApiKeyRecord] = None):
        self.original = record
        self.reset()

    @property
    def is_edit(self) -> bool:
        return self.original is not None

    def reset(self):
        record = self.original
        self.name = record.name if record else ""
        self.description = (record.description or "") if record else ""
        self.api_key = record.api_key if record else ""
        self.category = record.category if record else DEFAULT_CATEGORY
        self.service_url = (record.service_url or "") if record else ""
        self.expires_at = record.expires_at.isoformat() if record and record.expires_at else ""
        self.tags: List[str] = list(record.tags) if record else []
        self.new_tag = ""

    # --- 标签 ---
    def add_tag(self, raw: Optional[str] = None) -> bool:
        tag = normalize_tag(self.new_tag if raw is None else raw)
        if not tag or tag in self.tags:
            return False
        self.tags.append(tag)
        self.new_tag = ""
        return True

    def remove_tag(self, tag: str):
        self.tags = [t for t in self.tags if t != tag]

    # --- 校验 ---
    def expiry_date(self) -> Optional[date]:
        value = self.expires_at.strip()
        if not value:
            return None
        return date.fromisoformat(value)

    def errors(self) -> Dict[str, str]:
        errors = {}
        if not self.name.strip():
            errors["name"] = "Name is required"
        if not self.api_key.strip():
            errors["api_key"] = "API key is required"
        try:
            self.expiry_date()
        except ValueError:
            errors["expires_at"] = "Use YYYY-MM-DD"
        return errors

    @property
    def can_submit(self) -> bool:
        return not self.errors()

    def _values(self) -> dict:
        if not self.can_submit:
            raise ValueError(f"Form is incomplete: {', '.join(self.errors())}")
        return {
            "name": self.name.strip(),
            "description": self.description.strip() or None,
            "api_key": self.api_key.strip(),
            "category": self.category,
            "service_url": self.service_url.strip() or None,
            "expires_at": self.expiry_date(),
            "tags": list(self.tags),
        }

    def to_draft(self) -> ApiKeyDraft:
        return ApiKeyDraft(is_active=True, **self._values())

    def to_update(self) -> ApiKeyUpdate:
        """
        Only the fields that differ from the record being edited.

        An unchanged category is never re-validated, so records stored with a
        category outside CATEGORIES can still be edited.
        """
        if self.original is None:
            raise ValueError("Not editing an existing record")
        changes = {
            field: value
            for field, value in self._values().items()
            if value != getattr(self.original, field)
        }
        return ApiKeyUpdate(**changes)
