from typing import Optional

from fastapi import Header, Request

from app.services.case_store import CaseStore
from app.services.review_service import CaseReviewService


def get_review_service(request: Request) -> CaseReviewService:
    return request.app.state.review_service


def get_case_store(request: Request) -> CaseStore:
    return request.app.state.case_store


def get_user_role(x_user_role: Optional[str] = Header(default="viewer")) -> Optional[str]:
    return x_user_role
