from __future__ import annotations

import logging

from opsforge.domain.entities import AppSettingsEntity
from opsforge.domain.errors import ValidationError
from opsforge.domain.validation import parse_flag
from opsforge.infra.repository import SettingsRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"company_name", "contact_email", "currency", "date_format", "enable_audit_log"})


class SettingsService:
    """Exactly one settings row exists; it is created with defaults on first read."""

    def __init__(self, repo: SettingsRepository) -> None:
        self._repo = repo

    def get_or_create_default(self) -> AppSettingsEntity:
        return self._repo.get_or_create_default()

    def update_settings(self, patch: dict) -> AppSettingsEntity:
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported setting(s): {', '.join(sorted(unknown))}")
        data = dict(patch)
        if "currency" in data:
            currency = str(data["currency"] or "").strip().upper()
            if len(currency) != 3:
                raise ValidationError("currency must be a 3-letter code", field="currency")
            data["currency"] = currency
        if "enable_audit_log" in data:
            data["enable_audit_log"] = parse_flag(data["enable_audit_log"], "enable_audit_log", default=True)
        settings = self._repo.update_settings(data)
        logger.info("Settings updated: %s", ", ".join(sorted(data)))
        return settings
