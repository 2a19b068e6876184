"""
Vault feature: Schemas for archived answers.
"""

from pydantic import BaseModel
from datetime import datetime


class VaultEntry(BaseModel):
    """One archived question/answer pair."""
    id: str
    title: str
    content: str
    timestamp: datetime
    size_label: str
    status: str = "cloud_upload"


class TrackingUpdate(BaseModel):
    enabled: bool


class VaultListResponse(BaseModel):
    tracking_enabled: bool
    entries: list[VaultEntry]
