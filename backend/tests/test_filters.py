from globalcve.models.cve import Severity
from globalcve.services.filters import (
    FilterParams,
    apply_filters,
    deduplicate,
    paginate,
    sort_records,
)

from conftest import make_record


def ids(records):
    return [r.id for r in records]


def test_severity_and_source_filters_are_case_insensitive():
    records = [
        make_record("CVE-1", severity=Severity.HIGH, source="NVD"),
        make_record("CVE-2", severity=Severity.LOW, source="NVD"),
        make_record("CVE-3", severity=Severity.HIGH, source="JVN"),
    ]

    assert ids(apply_filters(records, FilterParams(severity="high"))) == ["CVE-1", "CVE-3"]
    assert ids(apply_filters(records, FilterParams(severity="HIGH", source="jvn"))) == ["CVE-3"]


def test_date_range_is_inclusive_and_drops_unparsable():
    records = [
        make_record("CVE-1", published="2024-01-01"),
        make_record("CVE-2", published="2024-01-15T10:00:00Z"),
        make_record("CVE-3", published="2024-02-01"),
        make_record("CVE-4", published="not a date"),
        make_record("CVE-5", published=None),
    ]

    filtered = apply_filters(records, FilterParams(start_date="2024-01-01", end_date="2024-02-01"))
    assert ids(filtered) == ["CVE-1", "CVE-2", "CVE-3"]

    assert ids(apply_filters(records, FilterParams(start_date="2024-01-10"))) == ["CVE-2", "CVE-3"]


def test_no_date_bounds_keeps_undated_records():
    records = [make_record("CVE-1", published="garbage")]
    assert ids(apply_filters(records, FilterParams())) == ["CVE-1"]


def test_unparsable_bound_is_ignored():
    records = [make_record("CVE-1", published="2020-01-01"), make_record("CVE-2", published="nope")]
    assert ids(apply_filters(records, FilterParams(start_date="yesterday-ish"))) == ["CVE-1", "CVE-2"]


def test_exploit_and_kev_filters():
    records = [
        make_record("CVE-1", source="EXPLOITDB"),
        make_record("CVE-2", source="NVD", kev=True),
        make_record("CVE-3", source="EXPLOITDB", kev=True),
    ]

    assert ids(apply_filters(records, FilterParams(has_exploit=True))) == ["CVE-1", "CVE-3"]
    assert ids(apply_filters(records, FilterParams(is_kev=True))) == ["CVE-2", "CVE-3"]
    assert ids(apply_filters(records, FilterParams(has_exploit=True, is_kev=True))) == ["CVE-3"]


def test_dedup_last_write_wins_at_first_position():
    records = [
        make_record("CVE-1", source="NVD"),
        make_record("CVE-2", source="NVD"),
        make_record("CVE-1", source="DEBIAN"),
    ]

    unique = deduplicate(records)
    assert ids(unique) == ["CVE-1", "CVE-2"]
    assert unique[0].source == "DEBIAN"


def test_sort_newest_and_oldest():
    records = [
        make_record("CVE-1", published="2024-02-01"),
        make_record("CVE-2", published="2024-03-01"),
        make_record("CVE-3", published="2024-01-01"),
    ]

    assert ids(sort_records(records)) == ["CVE-2", "CVE-1", "CVE-3"]
    assert ids(sort_records(records, "oldest")) == ["CVE-3", "CVE-1", "CVE-2"]
    assert ids(sort_records(records, "sideways")) == ["CVE-2", "CVE-1", "CVE-3"]


def test_sort_keeps_undated_records_in_place():
    records = [
        make_record("CVE-1", published="bad"),
        make_record("CVE-2", published="2024-01-01"),
        make_record("CVE-3", published="bad"),
        make_record("CVE-4", published="2024-05-01"),
    ]

    assert ids(sort_records(records, "newest")) == ["CVE-1", "CVE-4", "CVE-3", "CVE-2"]
    assert ids(sort_records(records, "oldest")) == ["CVE-1", "CVE-2", "CVE-3", "CVE-4"]


def test_sort_is_stable_for_equal_dates():
    records = [
        make_record("CVE-A", published="2024-01-01"),
        make_record("CVE-B", published="2024-01-01"),
    ]

    assert ids(sort_records(records, "newest")) == ["CVE-A", "CVE-B"]
    assert ids(sort_records(records, "oldest")) == ["CVE-A", "CVE-B"]


def test_sort_mixed_timezones():
    records = [
        make_record("CVE-1", published="2024-01-01T23:00:00-05:00"),
        make_record("CVE-2", published="2024-01-02T01:00:00Z"),
    ]
    assert ids(sort_records(records)) == ["CVE-1", "CVE-2"]


def test_paginate_second_page():
    records = [make_record(f"CVE-2024-{i:04d}") for i in range(250)]

    page = paginate(records, start_index=100)

    assert page.items == records[100:200]
    assert page.total == 250
    assert page.total_pages == 3
    assert page.page == 2


def test_paginate_past_end_and_empty():
    records = [make_record("CVE-1")]

    assert paginate(records, start_index=500).items == []
    empty = paginate([], 0)
    assert empty.total == 0
    assert empty.total_pages == 0
    assert empty.page == 1
