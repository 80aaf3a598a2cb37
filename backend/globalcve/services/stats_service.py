"""
Summary statistics over a filtered result set
"""
from datetime import timezone
from typing import Dict, Iterable, List

from globalcve.models.cve import CVERecord, CVEStats, Severity, VendorCount
from globalcve.services.filters import EXPLOIT_SOURCE

# Order matters: the first vendor found in a description wins
COMMON_VENDORS = [
    "Microsoft", "Apple", "Google", "Oracle", "Cisco", "Adobe",
    "VMware", "IBM", "Red Hat", "Linux", "Apache", "Mozilla",
    "WordPress", "Drupal", "PHP", "Python", "Node.js", "Intel",
    "AMD", "NVIDIA", "Samsung", "Lenovo", "Dell", "HP",
]
OTHER_VENDOR = "Other"
UNKNOWN_MONTH = "unknown"
TOP_VENDOR_LIMIT = 10


def extract_vendor(description: str) -> str:
    desc = (description or "").lower()
    for vendor in COMMON_VENDORS:
        if vendor.lower() in desc:
            return vendor
    return OTHER_VENDOR


def month_key(record: CVERecord) -> str:
    published = record.published_at()
    if published is None:
        return UNKNOWN_MONTH
    return published.astimezone(timezone.utc).strftime("%Y-%m")


def calculate_stats(records: Iterable[CVERecord]) -> CVEStats:
    records = list(records)
    stats = CVEStats(total_count=len(records))
    vendor_counts: Dict[str, int] = {}

    for record in records:
        severity = record.severity.value if record.severity else Severity.UNKNOWN.value
        stats.by_severity[severity] = stats.by_severity.get(severity, 0) + 1
        stats.by_source[record.source] = stats.by_source.get(record.source, 0) + 1

        key = month_key(record)
        stats.by_date[key] = stats.by_date.get(key, 0) + 1

        if record.source == EXPLOIT_SOURCE:
            stats.exploit_count += 1
        if record.kev:
            stats.kev_count += 1

        vendor = extract_vendor(record.description)
        vendor_counts[vendor] = vendor_counts.get(vendor, 0) + 1

    # sorted() is stable, so ties keep first-seen order
    ranked: List[VendorCount] = [
        VendorCount(vendor=vendor, count=count)
        for vendor, count in sorted(vendor_counts.items(), key=lambda kv: kv[1], reverse=True)
    ]
    stats.top_vendors = ranked[:TOP_VENDOR_LIMIT]
    return stats
