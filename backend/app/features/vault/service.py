"""
Vault feature: Service layer for archiving finished answers.

Lives in process memory only; entries disappear with the process.
"""

import logging
import uuid
from datetime import datetime, timezone, timedelta

from app.config import get_settings
from app.features.vault.schemas import VaultEntry

logger = logging.getLogger(__name__)

VN_TZ = timezone(timedelta(hours=7))
TRUNCATION_MARKER = "..."


def truncate_title(title: str, max_length: int = 100) -> str:
    """Cut the title to max_length chars and mark it, if it is longer."""
    if len(title) > max_length:
        return title[:max_length] + TRUNCATION_MARKER
    return title


class VaultService:
    """Archive of answers, newest first."""

    def __init__(self, tracking_enabled: bool | None = None):
        settings = get_settings()
        self.max_title_length = settings.VAULT_TITLE_MAX_LENGTH
        self.tracking_enabled = (
            settings.VAULT_TRACKING_ENABLED if tracking_enabled is None else tracking_enabled
        )
        self._entries: list[VaultEntry] = []

    def set_tracking(self, enabled: bool) -> None:
        self.tracking_enabled = enabled
        logger.info(f"Vault tracking {'enabled' if enabled else 'disabled'}")

    def save(self, title: str, content: str) -> VaultEntry | None:
        """Archive one answer. Does nothing when tracking is off."""
        if not self.tracking_enabled:
            return None

        entry = VaultEntry(
            id=uuid.uuid4().hex,
            title=truncate_title(title, self.max_title_length),
            content=content,
            timestamp=datetime.now(VN_TZ),
            size_label=f"{len(content) / 1024:.1f} KB",
        )
        self._entries.insert(0, entry)
        logger.info(f"💾 Saved vault entry {entry.id} ({entry.size_label})")
        return entry

    def list_entries(self) -> list[VaultEntry]:
        return list(self._entries)

    def get(self, entry_id: str) -> VaultEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)
