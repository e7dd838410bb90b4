import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from app.schemas.case import (
    AuditEvent,
    Case,
    CaseListItem,
    DecisionSubmittedEvent,
    DecisionType,
    FieldEditEvent,
)
from app.services.case_generator import CaseGenerator, parse_case_index
from app.services.errors import CaseNotFoundError, ConflictError, FieldNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_LIST_SIZE = 750


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CaseStore:
    """In-memory table of prior-authorization cases plus the queue projection.

    Stored cases are never mutated in place: every write swaps in a new
    ``Case`` built from the old one, and readers get deep copies. One lock per
    case serializes the read-modify-append step of a mutation; the registry
    lock only guards initialization, lazy materialization and lock allocation.
    """

    def __init__(
        self,
        generator: Optional[CaseGenerator] = None,
        list_size: int = DEFAULT_LIST_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.generator = generator or CaseGenerator()
        self.list_size = list_size
        self.clock = clock
        self._cases: Dict[str, Case] = {}
        self._case_list: List[CaseListItem] = []
        self._list_positions: Dict[str, int] = {}
        self._case_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.RLock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        with self._registry_lock:
            if self._initialized:
                return
            self._case_list = self.generator.generate_case_list(self.list_size)
            self._list_positions = {item.case_id: pos for pos, item in enumerate(self._case_list)}

            example = self.generator.example_case()
            self._cases[example.case_id] = example
            self._sync_list_item(example)

            self._initialized = True
            logger.info(
                "Case store initialized",
                extra={"list_size": len(self._case_list), "seeded_cases": len(self._cases)},
            )

    def get_list(self) -> List[CaseListItem]:
        self.initialize()
        return list(self._case_list)

    def get_or_create(self, case_id: str) -> Case:
        return self._materialize(case_id).model_copy(deep=True)

    def audit_trail(self, case_id: str) -> List[AuditEvent]:
        return list(self._materialize(case_id).audit_trail)

    def apply_field_edit(
        self,
        case_id: str,
        field_id: str,
        old_value: str,
        new_value: str,
        reason: str,
        user: str,
        timestamp: datetime,
    ) -> Case:
        with self._lock_for(case_id):
            current = self._materialize(case_id)
            extraction = current.get_extraction(field_id)
            if extraction is None:
                raise FieldNotFoundError(case_id, field_id)
            if extraction.value != old_value:
                logger.warning(
                    "Rejected stale field edit",
                    extra={"case_id": case_id, "field_id": field_id, "user": user},
                )
                raise ConflictError(case_id, field_id, old_value, extraction.value)

            event = FieldEditEvent(
                timestamp=timestamp,
                user=user,
                recorded_at=self._next_recorded_at(current),
                field_id=field_id,
                old_value=old_value,
                new_value=new_value,
                reason=reason,
            )
            extractions = [
                e.model_copy(update={"value": new_value}) if e.field_id == field_id else e
                for e in current.extractions
            ]
            updated = current.model_copy(
                update={"extractions": extractions, "audit_trail": [*current.audit_trail, event]}
            )
            self._cases[case_id] = updated

        logger.info(
            "Applied field edit",
            extra={"case_id": case_id, "field_id": field_id, "user": user},
        )
        return updated.model_copy(deep=True)

    def apply_decision(
        self,
        case_id: str,
        decision: DecisionType,
        is_override: bool,
        override_reason: Optional[str],
        evidence_used: List[str],
        user: str,
        timestamp: datetime,
    ) -> Case:
        with self._lock_for(case_id):
            current = self._materialize(case_id)
            if current.status.is_terminal:
                logger.info(
                    "Re-deciding case in terminal status",
                    extra={"case_id": case_id, "status": current.status.value},
                )
            event = DecisionSubmittedEvent(
                timestamp=timestamp,
                user=user,
                recorded_at=self._next_recorded_at(current),
                decision=decision,
                is_override=is_override,
                reason=override_reason or None,
                evidence_used=list(evidence_used),
            )
            updated = current.model_copy(
                update={"status": decision.as_status(), "audit_trail": [*current.audit_trail, event]}
            )
            self._cases[case_id] = updated
            self._sync_list_item(updated)

        logger.info(
            "Applied decision",
            extra={
                "case_id": case_id,
                "decision": decision.value,
                "is_override": is_override,
                "user": user,
            },
        )
        return updated.model_copy(deep=True)

    def _materialize(self, case_id: str) -> Case:
        self.initialize()
        case = self._cases.get(case_id)
        if case is not None:
            return case

        parse_case_index(case_id)
        with self._registry_lock:
            case = self._cases.get(case_id)
            if case is None:
                position = self._list_positions.get(case_id)
                list_item = self._case_list[position] if position is not None else None
                case = self.generator.generate_case(case_id, list_item)
                self._cases[case_id] = case
                logger.info("Generated case details", extra={"case_id": case_id})
            return case

    def _lock_for(self, case_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._case_locks.get(case_id)
            if lock is None:
                lock = threading.Lock()
                self._case_locks[case_id] = lock
            return lock

    def _sync_list_item(self, case: Case) -> None:
        position = self._list_positions.get(case.case_id)
        if position is not None:
            self._case_list[position] = CaseListItem.from_case(case)

    def _next_recorded_at(self, case: Case) -> datetime:
        now = self.clock()
        if case.audit_trail:
            last = case.audit_trail[-1].recorded_at
            if last is not None and last > now:
                return last
        return now
