from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

LOW_CONFIDENCE_THRESHOLD = 0.7


class CaseStatus(str, Enum):
    NEW = "NEW"
    IN_REVIEW = "IN_REVIEW"
    NEEDS_INFO = "NEEDS_INFO"
    APPROVED = "APPROVED"
    DENIED = "DENIED"

    @property
    def is_terminal(self) -> bool:
        return self in (CaseStatus.APPROVED, CaseStatus.DENIED)


class DecisionType(str, Enum):
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    NEEDS_INFO = "NEEDS_INFO"

    def as_status(self) -> CaseStatus:
        return CaseStatus(self.value)


class AuditAction(str, Enum):
    FIELD_EDIT = "FIELD_EDIT"
    DECISION_SUBMITTED = "DECISION_SUBMITTED"
    CASE_OPENED = "CASE_OPENED"
    CASE_CLOSED = "CASE_CLOSED"


class Specialty(str, Enum):
    CARDIOLOGY = "Cardiology"
    ONCOLOGY = "Oncology"
    MUSCULOSKELETAL = "Musculoskeletal"
    NEUROLOGY = "Neurology"
    GASTROENTEROLOGY = "Gastroenterology"


class CodeType(str, Enum):
    HCPCS = "HCPCS"
    CPT = "CPT"
    ICD_10 = "ICD-10"


class DocumentType(str, Enum):
    PDF = "PDF"
    IMAGE = "IMAGE"


class UserRole(str, Enum):
    VIEWER = "viewer"
    REVIEWER = "reviewer"
    ADMIN = "admin"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Member(_Frozen):
    id: str
    name: str
    dob: date


class ServiceRequest(_Frozen):
    service: str
    code_type: CodeType = CodeType.HCPCS
    code: str


class Document(_Frozen):
    doc_id: str
    type: DocumentType = DocumentType.PDF
    title: str
    pages: int = Field(..., ge=1)


class EvidenceSource(_Frozen):
    doc_id: str
    page: int = Field(..., ge=1)


class Extraction(_Frozen):
    field_id: str
    label: str
    value: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: EvidenceSource

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence < LOW_CONFIDENCE_THRESHOLD


class AIRecommendation(_Frozen):
    decision: DecisionType
    rationale: List[str]
    evidence_field_ids: List[str]


class _AuditEventBase(_Frozen):
    timestamp: datetime = Field(..., description="Caller-supplied time of the action")
    user: str
    recorded_at: Optional[datetime] = Field(default=None, description="Time the store accepted the event")


class FieldEditEvent(_AuditEventBase):
    action: Literal["FIELD_EDIT"] = "FIELD_EDIT"
    field_id: str
    old_value: str
    new_value: str
    reason: str


class DecisionSubmittedEvent(_AuditEventBase):
    action: Literal["DECISION_SUBMITTED"] = "DECISION_SUBMITTED"
    decision: DecisionType
    is_override: bool
    reason: Optional[str] = None
    evidence_used: List[str] = Field(default_factory=list)


class CaseOpenedEvent(_AuditEventBase):
    action: Literal["CASE_OPENED"] = "CASE_OPENED"


class CaseClosedEvent(_AuditEventBase):
    action: Literal["CASE_CLOSED"] = "CASE_CLOSED"


AuditEvent = Annotated[
    Union[FieldEditEvent, DecisionSubmittedEvent, CaseOpenedEvent, CaseClosedEvent],
    Field(discriminator="action"),
]


class Case(_Frozen):
    case_id: str
    status: CaseStatus
    specialty: Specialty
    member: Member
    request: ServiceRequest
    received_time: datetime
    sla_deadline: datetime
    documents: List[Document]
    extractions: List[Extraction]
    ai_recommendation: AIRecommendation
    audit_trail: List[AuditEvent] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> "Case":
        field_ids = [extraction.field_id for extraction in self.extractions]
        if len(field_ids) != len(set(field_ids)):
            raise ValueError(f"Duplicate extraction field_id in case {self.case_id}")

        pages_by_doc = {document.doc_id: document.pages for document in self.documents}
        for extraction in self.extractions:
            pages = pages_by_doc.get(extraction.source.doc_id)
            if pages is None:
                raise ValueError(
                    f"Extraction {extraction.field_id} cites unknown document {extraction.source.doc_id}"
                )
            if extraction.source.page > pages:
                raise ValueError(
                    f"Extraction {extraction.field_id} cites page {extraction.source.page} "
                    f"of {extraction.source.doc_id}, which has {pages} pages"
                )

        unknown = set(self.ai_recommendation.evidence_field_ids) - set(field_ids)
        if unknown:
            raise ValueError(f"AI recommendation cites unknown fields: {sorted(unknown)}")
        return self

    def get_extraction(self, field_id: str) -> Optional[Extraction]:
        for extraction in self.extractions:
            if extraction.field_id == field_id:
                return extraction
        return None


class CaseListItem(_Frozen):
    case_id: str
    status: CaseStatus
    specialty: Specialty
    member: Member
    request: ServiceRequest
    received_time: datetime
    sla_deadline: datetime

    @classmethod
    def from_case(cls, case: Case) -> "CaseListItem":
        return cls(
            case_id=case.case_id,
            status=case.status,
            specialty=case.specialty,
            member=case.member,
            request=case.request,
            received_time=case.received_time,
            sla_deadline=case.sla_deadline,
        )


class FieldEditRequest(_Frozen):
    old_value: str
    new_value: str = ""
    reason: str = ""
    timestamp: datetime
    user: str


class DecisionSubmissionRequest(_Frozen):
    final_decision: Optional[DecisionType] = None
    is_override: bool = False
    override_reason: Optional[str] = None
    evidence_used: List[str] = Field(default_factory=list)
    timestamp: datetime
    user: str


class Pagination(BaseModel):
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class PaginatedCases(BaseModel):
    items: List[CaseListItem]
    pagination: Pagination
