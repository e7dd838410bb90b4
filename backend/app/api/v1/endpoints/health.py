from fastapi import APIRouter, Depends

from app.api.deps import get_case_store
from app.core.config import Settings, get_settings
from app.services.case_store import CaseStore

router = APIRouter()


@router.get("/health")
def health(
    settings: Settings = Depends(get_settings),
    store: CaseStore = Depends(get_case_store),
) -> dict:
    return {
        "status": "ok",
        "environment": settings.environment,
        "store_initialized": store.initialized,
    }
