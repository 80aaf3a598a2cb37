"""
Structured filters, deduplication, sorting and pagination
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from globalcve.models.cve import CVERecord, parse_timestamp

logger = logging.getLogger(__name__)

EXPLOIT_SOURCE = "EXPLOITDB"
SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
PAGE_SIZE = 100


@dataclass
class FilterParams:
    """Optional structured filters; None/False means not applied"""
    severity: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    source: Optional[str] = None
    has_exploit: bool = False
    is_kev: bool = False


def _parse_bound(value: Optional[str], label: str) -> Optional[datetime]:
    if not value:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        logger.warning(f"Ignoring unparsable {label}: {value!r}")
    return parsed


def filter_by_date_range(
    records: List[CVERecord],
    start: Optional[datetime],
    end: Optional[datetime],
) -> List[CVERecord]:
    """Inclusive range; records without a parsable date are dropped"""
    if start is None and end is None:
        return records

    kept = []
    for record in records:
        published = record.published_at()
        if published is None:
            continue
        if start is not None and published < start:
            continue
        if end is not None and published > end:
            continue
        kept.append(record)
    return kept


def apply_filters(records: List[CVERecord], params: FilterParams) -> List[CVERecord]:
    """Severity, date range, source, exploit, KEV, in that order"""
    results = records

    if params.severity:
        wanted = params.severity.upper()
        results = [r for r in results if r.severity.value.upper() == wanted]

    start = _parse_bound(params.start_date, "startDate")
    end = _parse_bound(params.end_date, "endDate")
    results = filter_by_date_range(results, start, end)

    if params.source:
        wanted = params.source.upper()
        results = [r for r in results if r.source.upper() == wanted]

    if params.has_exploit:
        results = [r for r in results if r.source == EXPLOIT_SOURCE]

    if params.is_kev:
        results = [r for r in results if r.kev is True]

    return results


def deduplicate(records: List[CVERecord]) -> List[CVERecord]:
    """
    One record per id, last write wins.

    The surviving record replaces the earlier ones wholesale and sits where
    the id was first seen.
    """
    unique: Dict[str, CVERecord] = {}
    for record in records:
        unique[record.id] = record
    return list(unique.values())


def sort_records(records: List[CVERecord], order: str = SORT_NEWEST) -> List[CVERecord]:
    """
    Stable sort by publish date.

    Records whose date does not parse compare neither less nor greater than
    anything, so they stay in their slots; the dated records are sorted into
    the remaining positions.
    """
    descending = order != SORT_OLDEST
    keyed = [(record, record.published_ms()) for record in records]

    dated_slots = [i for i, (_, ms) in enumerate(keyed) if ms is not None]
    dated = sorted(
        (keyed[i] for i in dated_slots),
        key=lambda pair: pair[1],
        reverse=descending,
    )

    ordered = [record for record, _ in keyed]
    for slot, (record, _) in zip(dated_slots, dated):
        ordered[slot] = record
    return ordered


@dataclass
class Page:
    items: List[CVERecord] = field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0


def paginate(records: List[CVERecord], start_index: int = 0, page_size: int = PAGE_SIZE) -> Page:
    """Slice [start_index, start_index + page_size) out of the full result set"""
    start_index = max(start_index, 0)
    total = len(records)
    return Page(
        items=records[start_index:start_index + page_size],
        total=total,
        page=start_index // page_size + 1,
        total_pages=math.ceil(total / page_size),
    )
