from globalcve.models.cve import Severity
from globalcve.services.stats_service import calculate_stats, extract_vendor

from conftest import make_record


def test_counts_are_consistent():
    records = [
        make_record("CVE-1", severity=Severity.CRITICAL, source="NVD", published="2024-01-05"),
        make_record("CVE-2", severity=Severity.HIGH, source="JVN", published="2024-01-20"),
        make_record("CVE-3", source="EXPLOITDB", published="garbage", kev=True),
        make_record("CVE-4", severity=Severity.LOW, source="NVD", published=None),
    ]

    stats = calculate_stats(records)

    assert stats.total_count == 4
    assert sum(stats.by_severity.values()) == sum(stats.by_source.values()) == stats.total_count
    assert stats.by_severity == {"CRITICAL": 1, "HIGH": 1, "MEDIUM": 0, "LOW": 1, "UNKNOWN": 1}
    assert stats.by_source == {"NVD": 2, "JVN": 1, "EXPLOITDB": 1}
    assert stats.by_date == {"2024-01": 2, "unknown": 2}
    assert stats.exploit_count == 1
    assert stats.kev_count == 1


def test_empty_input_is_zero_filled():
    stats = calculate_stats([])

    assert stats.total_count == 0
    assert stats.by_severity == {"CRITICAL": 0, "HIGH": 0, "MEDIUM": 0, "LOW": 0, "UNKNOWN": 0}
    assert stats.by_source == {}
    assert stats.top_vendors == []


def test_vendor_attribution_uses_first_listed_vendor():
    assert extract_vendor("Google Chrome on Microsoft Windows") == "Microsoft"
    assert extract_vendor("Flaw in NODE.JS http parser") == "Node.js"
    assert extract_vendor("Obscure router firmware") == "Other"


def test_top_vendors_ranked_and_truncated():
    vendors = (
        ["Intel"] + ["Cisco"] * 3 + ["Adobe"] * 2
        + ["Dell", "Samsung", "Mozilla", "Drupal", "Lenovo", "IBM", "Oracle", "Apple"]
    )
    records = [make_record(f"CVE-{i}", description=f"{v} bug") for i, v in enumerate(vendors)]

    stats = calculate_stats(records)

    assert [(v.vendor, v.count) for v in stats.top_vendors] == [
        ("Cisco", 3), ("Adobe", 2), ("Intel", 1), ("Dell", 1), ("Samsung", 1),
        ("Mozilla", 1), ("Drupal", 1), ("Lenovo", 1), ("IBM", 1), ("Oracle", 1),
    ]


def test_camel_case_serialization():
    dumped = calculate_stats([make_record("CVE-1")]).model_dump(by_alias=True)

    assert set(dumped) == {
        "totalCount", "bySeverity", "bySource", "byDate", "exploitCount", "kevCount", "topVendors",
    }


def test_month_buckets_use_utc():
    records = [
        make_record("CVE-1", published="2024-01-31T23:00:00-05:00"),
        make_record("CVE-2", published="2024-03-01T01:00:00+09:00"),
    ]

    assert calculate_stats(records).by_date == {"2024-02": 2}
