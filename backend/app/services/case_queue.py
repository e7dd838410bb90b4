from typing import Iterable, List, Optional

from app.schemas.case import CaseListItem, CaseStatus, Specialty


def filter_cases(
    items: Iterable[CaseListItem],
    search: Optional[str] = None,
    status: Optional[CaseStatus] = None,
    specialty: Optional[Specialty] = None,
) -> List[CaseListItem]:
    """Match search text against case id, member id and member name, case-insensitively."""
    term = (search or "").strip().lower()
    matched = []
    for item in items:
        if term and not (
            term in item.case_id.lower()
            or term in item.member.id.lower()
            or term in item.member.name.lower()
        ):
            continue
        if status is not None and item.status != status:
            continue
        if specialty is not None and item.specialty != specialty:
            continue
        matched.append(item)
    return matched


def sort_by_sla(items: Iterable[CaseListItem]) -> List[CaseListItem]:
    """Most urgent deadline first."""
    return sorted(items, key=lambda item: item.sla_deadline)
