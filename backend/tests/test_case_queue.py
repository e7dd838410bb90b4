from app.schemas.case import CaseStatus, Specialty
from app.services.case_queue import filter_cases, sort_by_sla


def test_search_matches_case_member_id_and_name(store):
    items = store.get_list()
    assert [i.case_id for i in filter_cases(items, search="pa-10293")] == ["PA-10293"]
    assert [i.case_id for i in filter_cases(items, search="m-88321")] == ["PA-10293"]
    assert "PA-10293" in [i.case_id for i in filter_cases(items, search="TEST patient")]


def test_status_and_specialty_filters(store):
    items = store.get_list()
    filtered = filter_cases(items, status=CaseStatus.DENIED, specialty=Specialty.ONCOLOGY)
    assert filtered
    assert all(i.status == CaseStatus.DENIED and i.specialty == Specialty.ONCOLOGY for i in filtered)
    assert len(filter_cases(items)) == len(items)


def test_sort_by_sla(store):
    ordered = sort_by_sla(store.get_list())
    deadlines = [i.sla_deadline for i in ordered]
    assert deadlines == sorted(deadlines)
