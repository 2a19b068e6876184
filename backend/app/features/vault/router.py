"""
Vault feature: API routes.
"""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_session
from app.core.session import StudySession
from app.features.vault.schemas import TrackingUpdate, VaultListResponse

router = APIRouter()


@router.get("", response_model=VaultListResponse)
async def list_vault(session: StudySession = Depends(get_session)):
    """List archived answers, newest first."""
    return VaultListResponse(
        tracking_enabled=session.vault.tracking_enabled,
        entries=session.vault.list_entries(),
    )


@router.put("/tracking")
async def update_tracking(data: TrackingUpdate, session: StudySession = Depends(get_session)):
    """Turn automatic archiving of answers on or off."""
    session.vault.set_tracking(data.enabled)
    return {"tracking_enabled": session.vault.tracking_enabled}
