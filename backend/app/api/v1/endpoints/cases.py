from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_review_service, get_user_role
from app.core.config import Settings, get_settings
from app.schemas.case import (
    Case,
    CaseStatus,
    DecisionSubmissionRequest,
    FieldEditRequest,
    PaginatedCases,
    Specialty,
)
from app.services.case_queue import filter_cases, sort_by_sla
from app.services.review_service import CaseReviewService

router = APIRouter()


@router.get("/cases", response_model=PaginatedCases)
async def list_cases(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    search: Optional[str] = None,
    status: Optional[CaseStatus] = None,
    specialty: Optional[Specialty] = None,
    sort: Optional[Literal["sla"]] = None,
    offline: bool = False,
    settings: Settings = Depends(get_settings),
    service: CaseReviewService = Depends(get_review_service),
) -> PaginatedCases:
    bounded_limit = min(limit or settings.default_limit, settings.max_limit)
    items = await service.list_cases(offline=offline)
    items = filter_cases(items, search=search, status=status, specialty=specialty)
    if sort == "sla":
        items = sort_by_sla(items)
    return PaginatedCases(
        items=items[offset: offset + bounded_limit],
        pagination={"limit": bounded_limit, "offset": offset, "total": len(items)},
    )


@router.get("/cases/{case_id}", response_model=Case)
async def get_case(
    case_id: str,
    offline: bool = False,
    service: CaseReviewService = Depends(get_review_service),
) -> Case:
    return await service.get_case(case_id, offline=offline)


@router.post("/cases/{case_id}/extractions/{field_id}", response_model=Case)
async def edit_extraction(
    case_id: str,
    field_id: str,
    payload: FieldEditRequest,
    offline: bool = False,
    role: Optional[str] = Depends(get_user_role),
    service: CaseReviewService = Depends(get_review_service),
) -> Case:
    return await service.edit_extraction(case_id, field_id, payload, role=role, offline=offline)


@router.post("/cases/{case_id}/decision", response_model=Case)
async def submit_decision(
    case_id: str,
    payload: DecisionSubmissionRequest,
    offline: bool = False,
    role: Optional[str] = Depends(get_user_role),
    service: CaseReviewService = Depends(get_review_service),
) -> Case:
    return await service.submit_decision(case_id, payload, role=role, offline=offline)
