"""Synthetic prior-authorization cases for the in-memory store."""
import random
import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from app.schemas.case import (
    AIRecommendation,
    Case,
    CaseListItem,
    CaseStatus,
    CodeType,
    DecisionType,
    Document,
    DocumentType,
    EvidenceSource,
    Extraction,
    Member,
    ServiceRequest,
    Specialty,
)
from app.services.errors import CaseNotFoundError

CASE_ID_RE = re.compile(r"^PA-(\d+)$")
CASE_ID_BASE = 10000
MEMBER_ID_BASE = 80000
RECEIVED_WINDOW = timedelta(days=7)
EXAMPLE_CASE_ID = "PA-10293"

STATUSES = list(CaseStatus)
SPECIALTIES = list(Specialty)

SERVICES = [
    "Wearable cardioverter-defibrillator",
    "MRI - Brain with contrast",
    "Physical therapy - 12 sessions",
    "Chemotherapy - FOLFOX regimen",
    "Spinal fusion surgery",
    "Cardiac catheterization",
    "Sleep study - Polysomnography",
    "Joint replacement - Hip",
    "Radiation therapy - 30 treatments",
    "Genetic testing - BRCA1/2",
]

FIRST_NAMES = [
    "James", "Mary", "John", "Patricia", "Robert", "Jennifer",
    "Michael", "Linda", "William", "Elizabeth", "David", "Barbara",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia",
    "Miller", "Davis", "Rodriguez", "Martinez", "Hernandez", "Lopez",
]

STANDARD_DOCUMENTS = [
    {"doc_id": "DOC-1", "title": "Clinical Notes", "pages": 7},
    {"doc_id": "DOC-2", "title": "Lab Results", "pages": 3},
    {"doc_id": "DOC-3", "title": "Imaging Reports", "pages": 2},
]

# field_id, label, value, confidence, doc_id, page
EXTRACTION_TEMPLATES: Dict[Optional[Specialty], List[tuple]] = {
    Specialty.CARDIOLOGY: [
        ("dx", "Diagnosis", "Non-ischemic cardiomyopathy", 0.62, "DOC-1", 2),
        ("ef", "Ejection Fraction", "25%", 0.91, "DOC-1", 3),
        ("symptoms", "Symptoms", "Shortness of breath, fatigue, palpitations", 0.78, "DOC-1", 2),
        (
            "medication",
            "Current Medications",
            "Lisinopril 10mg daily, Metoprolol 25mg BID, Furosemide 20mg daily",
            0.45,
            "DOC-1",
            4,
        ),
        ("prior_treatment", "Prior Treatment", "Medical therapy for 6 months", 0.68, "DOC-1", 5),
    ],
    Specialty.ONCOLOGY: [
        ("dx", "Diagnosis", "Stage IIIB colorectal adenocarcinoma", 0.88, "DOC-1", 1),
        ("staging", "Cancer Staging", "T3N1M0", 0.92, "DOC-1", 2),
        ("biomarkers", "Biomarkers", "KRAS wild-type, MSI-stable", 0.55, "DOC-2", 1),
        ("prior_treatment", "Prior Treatment", "Surgical resection completed 4 weeks ago", 0.81, "DOC-1", 3),
    ],
    Specialty.MUSCULOSKELETAL: [
        ("dx", "Diagnosis", "Severe osteoarthritis, right hip", 0.85, "DOC-1", 1),
        ("pain_level", "Pain Level", "8/10, limiting daily activities", 0.73, "DOC-1", 2),
        (
            "imaging",
            "Imaging Results",
            "X-ray shows severe joint space narrowing, bone-on-bone contact",
            0.89,
            "DOC-2",
            1,
        ),
        (
            "prior_treatment",
            "Conservative Treatment",
            "PT 8 weeks, NSAIDs, cortisone injection - all failed",
            0.48,
            "DOC-1",
            3,
        ),
    ],
    None: [
        ("dx", "Diagnosis", "Clinical diagnosis documented", 0.75, "DOC-1", 1),
        ("clinical_notes", "Clinical Notes", "Patient evaluation completed", 0.82, "DOC-1", 2),
    ],
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_case_index(case_id: str) -> int:
    """Return the generator index of a case id (PA-10293 -> 293)."""
    match = CASE_ID_RE.match(case_id)
    if not match:
        raise CaseNotFoundError(case_id)
    return int(match.group(1)) - CASE_ID_BASE


def build_extractions(specialty: Specialty) -> List[Extraction]:
    templates = EXTRACTION_TEMPLATES.get(specialty, EXTRACTION_TEMPLATES[None])
    return [
        Extraction(
            field_id=field_id,
            label=label,
            value=value,
            confidence=confidence,
            source=EvidenceSource(doc_id=doc_id, page=page),
        )
        for field_id, label, value, confidence, doc_id, page in templates
    ]


def recommend(extractions: List[Extraction], rng: random.Random) -> AIRecommendation:
    """Low-confidence evidence asks for more information; otherwise approve 70% of the time."""
    low_confidence = [e for e in extractions if e.is_low_confidence]
    if low_confidence:
        return AIRecommendation(
            decision=DecisionType.NEEDS_INFO,
            rationale=[
                f"{len(low_confidence)} field(s) extracted with low confidence",
                "Additional documentation recommended for verification",
                "Manual review of source documents advised",
            ],
            evidence_field_ids=[e.field_id for e in extractions[:2]],
        )

    if rng.random() > 0.3:
        return AIRecommendation(
            decision=DecisionType.APPROVED,
            rationale=[
                "All clinical criteria met based on extracted evidence",
                "Documentation supports medical necessity",
                "Treatment aligns with clinical guidelines",
            ],
            evidence_field_ids=[e.field_id for e in extractions[:3]],
        )
    return AIRecommendation(
        decision=DecisionType.DENIED,
        rationale=[
            "Insufficient documentation of medical necessity",
            "Alternative treatment options not adequately explored",
            "Does not meet coverage criteria",
        ],
        evidence_field_ids=[e.field_id for e in extractions[:2]],
    )


class CaseGenerator:
    """Builds list items and full cases.

    With a ``seed`` the output for a given case id is reproducible across
    processes; without one it is random, and callers are expected to cache
    the first result per id.
    """

    def __init__(
        self,
        sla_hours: int = 48,
        seed: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.sla_window = timedelta(hours=sla_hours)
        self.seed = seed
        self.clock = clock

    def _rng(self, key: str) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}:{key}")

    def _received_time(self, rng: random.Random, now: datetime) -> datetime:
        offset_ms = rng.randint(0, int(RECEIVED_WINDOW.total_seconds() * 1000))
        return now - timedelta(milliseconds=offset_ms)

    def _member(self, index: int, rng: random.Random, now: datetime) -> Member:
        dob = date(now.year - rng.randint(18, 90), rng.randint(1, 12), rng.randint(1, 28))
        return Member(
            id=f"M-{MEMBER_ID_BASE + index}",
            name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            dob=dob,
        )

    def _service_request(self, rng: random.Random) -> ServiceRequest:
        return ServiceRequest(
            service=rng.choice(SERVICES),
            code_type=CodeType.HCPCS,
            code=f"K{1000 + rng.randint(0, 9999)}",
        )

    def generate_case_list(self, count: int) -> List[CaseListItem]:
        rng = self._rng("case-list")
        now = self.clock()
        items: List[CaseListItem] = []
        for index in range(count):
            received_time = self._received_time(rng, now)
            items.append(
                CaseListItem(
                    case_id=f"PA-{CASE_ID_BASE + index}",
                    status=rng.choice(STATUSES),
                    specialty=rng.choice(SPECIALTIES),
                    member=self._member(index, rng, now),
                    received_time=received_time,
                    sla_deadline=received_time + self.sla_window,
                    request=self._service_request(rng),
                )
            )
        return items

    def generate_case(self, case_id: str, list_item: Optional[CaseListItem] = None) -> Case:
        """Build the full case for ``case_id``, reusing the list item's header fields when given."""
        index = parse_case_index(case_id)
        rng = self._rng(case_id)
        now = self.clock()

        if list_item is not None:
            status = list_item.status
            specialty = list_item.specialty
            member = list_item.member
            request = list_item.request
            received_time = list_item.received_time
            sla_deadline = list_item.sla_deadline
        else:
            status = CaseStatus.IN_REVIEW
            specialty = SPECIALTIES[index % len(SPECIALTIES)]
            received_time = self._received_time(rng, now)
            sla_deadline = received_time + self.sla_window
            member = self._member(index, rng, now)
            request = self._service_request(rng)

        extractions = build_extractions(specialty)
        return Case(
            case_id=case_id,
            status=status,
            specialty=specialty,
            member=member,
            request=request,
            received_time=received_time,
            sla_deadline=sla_deadline,
            documents=[Document(type=DocumentType.PDF, **doc) for doc in STANDARD_DOCUMENTS],
            extractions=extractions,
            ai_recommendation=recommend(extractions, rng),
            audit_trail=[],
        )

    def example_case(self) -> Case:
        """The fully documented cardiology case every fresh store starts with."""
        now = self.clock()
        return Case(
            case_id=EXAMPLE_CASE_ID,
            status=CaseStatus.IN_REVIEW,
            specialty=Specialty.CARDIOLOGY,
            member=Member(id="M-88321", name="Test Patient", dob=date(1978, 2, 11)),
            request=ServiceRequest(
                service="Wearable cardioverter-defibrillator",
                code_type=CodeType.HCPCS,
                code="K0606",
            ),
            received_time=now - timedelta(days=1),
            sla_deadline=now + timedelta(days=1),
            documents=[Document(doc_id="DOC-1", type=DocumentType.PDF, title="Clinical Notes", pages=7)],
            extractions=[
                Extraction(
                    field_id="dx",
                    label="Diagnosis",
                    value="Non-ischemic cardiomyopathy",
                    confidence=0.62,
                    source=EvidenceSource(doc_id="DOC-1", page=2),
                ),
                Extraction(
                    field_id="ef",
                    label="Ejection Fraction",
                    value="25%",
                    confidence=0.91,
                    source=EvidenceSource(doc_id="DOC-1", page=3),
                ),
            ],
            ai_recommendation=AIRecommendation(
                decision=DecisionType.NEEDS_INFO,
                rationale=[
                    "EF present but timing unclear",
                    "Missing documented guideline-directed medical therapy duration",
                ],
                evidence_field_ids=["ef", "dx"],
            ),
            audit_trail=[],
        )
