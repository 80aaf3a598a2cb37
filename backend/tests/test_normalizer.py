import pytest

from globalcve.models.cve import Severity
from globalcve.services.normalizer import infer_severity, normalize_item


@pytest.mark.parametrize("item,expected", [
    ({"cvss": 9.5}, Severity.CRITICAL),
    ({"cvss": 9.0}, Severity.CRITICAL),
    ({"cvss": 7.0}, Severity.HIGH),
    ({"cvss": 4.0}, Severity.MEDIUM),
    ({"cvss": 0.1}, Severity.LOW),
    ({"severity": "HIGH"}, Severity.HIGH),
    ({"severity": "medium"}, Severity.MEDIUM),
    ({}, Severity.UNKNOWN),
])
def test_severity_thresholds(item, expected):
    assert infer_severity(item) == expected


def test_score_wins_over_label():
    assert infer_severity({"cvss": 9.8, "severity": "LOW"}) == Severity.CRITICAL


def test_score_aliases_in_order():
    assert infer_severity({"cvssScore": 7.5}) == Severity.HIGH
    assert infer_severity({"cvssv3": None, "cvssv2": 5.0}) == Severity.MEDIUM
    assert infer_severity({"cvss": 2.0, "cvssv3": 9.9}) == Severity.LOW


def test_non_numeric_score_falls_back_to_label():
    assert infer_severity({"cvss": "9.8", "severity": "LOW"}) == Severity.LOW
    assert infer_severity({"cvss": True}) == Severity.UNKNOWN


def test_zero_score_uses_label():
    assert infer_severity({"cvss": 0, "severity": "HIGH"}) == Severity.HIGH
    assert infer_severity({"cvss": 0}) == Severity.UNKNOWN


def test_unknown_label_is_unknown():
    assert infer_severity({"severity": "IMPORTANT"}) == Severity.UNKNOWN


def test_normalize_fills_placeholder_and_source():
    record = normalize_item({"id": "CVE-2024-1", "description": "  "}, "CIRCL", "No description from CIRCL")

    assert record.description == "No description from CIRCL"
    assert record.source == "CIRCL"
    assert record.kev is False


def test_normalize_keeps_item_source_tag():
    record = normalize_item({"id": "CVE-2024-1", "source": "NVD-MIRROR"}, "NVD")
    assert record.source == "NVD-MIRROR"


def test_normalize_ignores_malformed_source_and_metadata():
    record = normalize_item({"id": "CVE-2024-1", "source": {"name": "x"}, "metadata": ["a"], "cvss": 5.0}, "NVD")

    assert record.source == "NVD"
    assert record.metadata == {"cvss": 5.0}


def test_normalize_drops_items_without_id():
    assert normalize_item({"description": "no id"}, "NVD") is None
    assert normalize_item({"id": "  "}, "NVD") is None
    assert normalize_item(["CVE-2024-1"], "NVD") is None


def test_normalize_copies_score_into_metadata():
    record = normalize_item({"id": "CVE-2024-1", "cvssv3": 8.1, "metadata": {"vendor": "X"}}, "NVD")

    assert record.severity == Severity.HIGH
    assert record.metadata == {"vendor": "X", "cvss": 8.1}


def test_normalize_keeps_existing_metadata_score():
    record = normalize_item({"id": "CVE-2024-1", "cvss": 8.1, "metadata": {"cvss": "8.1 (v3)"}}, "NVD")
    assert record.metadata["cvss"] == "8.1 (v3)"


def test_normalize_keeps_unparsable_published_verbatim():
    record = normalize_item({"id": "CVE-2024-1", "published": "sometime in May"}, "SAP")

    assert record.published == "sometime in May"
    assert record.published_at() is None
