"""Settings service: a flat key/value mapping with documented defaults.

Values are stored as strings and coerced on read. A malformed stored value
never raises; the key's default is returned instead.
"""

import enum
from collections.abc import Mapping
from typing import Any

from loguru import logger

from visitor_api.core.clock import utcnow
from visitor_api.services.audit_service import AuditAction, append_audit
from visitor_api.storage.base import Store

DEFAULT_CONSENT_TEXT = "ข้าพเจ้ายินยอมให้เก็บข้อมูลส่วนบุคคลเพื่อวัตถุประสงค์ด้านความปลอดภัย"


class SettingKey(enum.StrEnum):
    """Well-known setting keys."""

    CONSENT_TEXT = "consentText"
    RETENTION_DAYS = "retentionDays"
    NOTIFICATION_TIME = "notificationTime"
    EMAIL_ENABLED = "emailEnabled"
    EMAIL_RECIPIENT = "emailRecipient"
    EMAIL_SEND_TIME = "emailSendTime"
    EMAIL_INCLUDE_DETAILS = "emailIncludeDetails"


DEFAULTS: dict[str, Any] = {
    SettingKey.CONSENT_TEXT: DEFAULT_CONSENT_TEXT,
    SettingKey.RETENTION_DAYS: 90,
    SettingKey.NOTIFICATION_TIME: "00:00",
    SettingKey.EMAIL_ENABLED: False,
    SettingKey.EMAIL_RECIPIENT: "",
    SettingKey.EMAIL_SEND_TIME: "08:00",
    SettingKey.EMAIL_INCLUDE_DETAILS: True,
}

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def serialize_value(value: Any) -> str:
    """Convert a typed setting value to its stored string form."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_value(key: str, raw: str | None) -> Any:
    """Convert a stored string to the key's type, falling back to its default.

    Unknown keys are returned as stored.
    """
    default = DEFAULTS.get(key)
    if not raw:
        return default
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        return default
    if isinstance(default, int):
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning(f"Stored setting {key}={raw!r} is not an integer; using default {default}")
            return default
    return raw


async def get_setting(store: Store, key: str) -> str | None:
    """Return a setting as stored, or the string form of its default if never written."""
    setting = await store.get_setting(key)
    if setting is not None:
        return setting.value
    default = DEFAULTS.get(key)
    return serialize_value(default) if default is not None else None


async def get_all_settings(store: Store) -> dict[str, Any]:
    """Return every well-known key with its typed value.

    Keys that were never written carry their documented default; keys written
    by older clients that are not well-known are included as stored.
    """
    stored = {s.key: s.value for s in await store.list_settings()}
    result = {key: coerce_value(key, stored.get(key)) for key in DEFAULTS}
    for key, value in stored.items():
        if key not in result:
            result[key] = value
    return result


async def set_setting(store: Store, key: str, value: Any) -> None:
    """Create or replace a setting and refresh its ``updated_at``."""
    await store.upsert_setting(key, serialize_value(value), utcnow())


async def update_settings(store: Store, changes: Mapping[str, Any], *, actor_id: str = "system") -> list[str]:
    """Upsert each provided key independently and audit the update once.

    The writes are not atomic as a group: if one fails, earlier keys stay written.

    Args:
        store: The active store.
        changes: Setting keys to their new typed values.
        actor_id: Who made the change.

    Returns:
        The keys that were written.
    """
    written: list[str] = []
    for key, value in changes.items():
        await set_setting(store, key, value)
        written.append(key)
    logger.info(f"Settings updated by {actor_id}: {', '.join(written) or 'no keys'}")
    await append_audit(
        store,
        action=AuditAction.SETTINGS_UPDATED,
        actor_id=actor_id,
        details=f"App settings updated: {', '.join(written)}" if written else "App settings updated",
    )
    return written
