"""Externally callable surface of the case backend.

Every call runs the same sequence: refuse immediately when the caller is
offline, suspend for the injected latency, then either fail with a transient
server error or proceed. Mutations additionally check the caller's role and
the payload before anything reaches the store, so a failed call never leaves
a side effect behind.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Union

from app.core.permissions import Capability, has_permission
from app.schemas.case import (
    Case,
    CaseListItem,
    DecisionSubmissionRequest,
    FieldEditRequest,
    UserRole,
)
from app.services.case_store import CaseStore
from app.services.errors import (
    ForbiddenError,
    InvalidRequestError,
    TransientError,
    UnavailableError,
)
from app.services.fault_injector import FaultInjector

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "Network request failed: Offline mode enabled"


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


def validate_field_edit(request: FieldEditRequest) -> None:
    if _is_blank(request.new_value) or _is_blank(request.reason):
        raise InvalidRequestError("Invalid request: new_value and reason are required")


def validate_decision(request: DecisionSubmissionRequest) -> None:
    if request.final_decision is None or not request.evidence_used:
        raise InvalidRequestError("Invalid request: final_decision and evidence_used are required")
    if request.is_override and _is_blank(request.override_reason):
        raise InvalidRequestError("Override reason is required when overriding AI recommendation")


class CaseReviewService:
    def __init__(
        self,
        store: CaseStore,
        fault_injector: FaultInjector,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.fault_injector = fault_injector
        self._sleep = sleep

    async def _gate(self, operation: str, offline: bool, failure_message: str) -> None:
        if offline:
            raise UnavailableError(OFFLINE_MESSAGE)

        await self._sleep(self.fault_injector.delay())

        if self.fault_injector.should_fail():
            logger.warning("Injected server failure", extra={"operation": operation})
            raise TransientError(f"{failure_message}: Server error")

    @staticmethod
    def _authorize(role: Union[UserRole, str, None], capability: Capability) -> None:
        if not has_permission(role, capability):
            role_name = role.value if isinstance(role, UserRole) else role
            raise ForbiddenError(f"Role {role_name!r} may not {capability.value} cases")

    async def list_cases(self, offline: bool = False) -> List[CaseListItem]:
        await self._gate("list_cases", offline, "Failed to fetch cases")
        return self.store.get_list()

    async def get_case(self, case_id: str, offline: bool = False) -> Case:
        await self._gate("get_case", offline, f"Failed to fetch case {case_id}")
        return self.store.get_or_create(case_id)

    async def edit_extraction(
        self,
        case_id: str,
        field_id: str,
        request: FieldEditRequest,
        role: Union[UserRole, str, None],
        offline: bool = False,
    ) -> Case:
        await self._gate("edit_extraction", offline, "Failed to update extraction")
        self._authorize(role, Capability.EDIT)
        validate_field_edit(request)
        return self.store.apply_field_edit(
            case_id,
            field_id,
            old_value=request.old_value,
            new_value=request.new_value,
            reason=request.reason,
            user=request.user,
            timestamp=request.timestamp,
        )

    async def submit_decision(
        self,
        case_id: str,
        request: DecisionSubmissionRequest,
        role: Union[UserRole, str, None],
        offline: bool = False,
    ) -> Case:
        await self._gate("submit_decision", offline, "Failed to submit decision")
        self._authorize(role, Capability.SUBMIT)
        validate_decision(request)
        return self.store.apply_decision(
            case_id,
            request.final_decision,
            is_override=request.is_override,
            override_reason=request.override_reason,
            evidence_used=request.evidence_used,
            user=request.user,
            timestamp=request.timestamp,
        )
