"""
Normalization of loosely-shaped adapter items into CVERecord
"""
import logging
import numbers
from typing import Any, Dict, Optional

from globalcve.models.cve import CVERecord, Severity

logger = logging.getLogger(__name__)

SCORE_ALIASES = ("cvss", "cvssScore", "cvssv3", "cvssv2")
SEVERITY_LABELS = {"CRITICAL", "HIGH", "MEDIUM", "LOW"}
DEFAULT_PLACEHOLDER = "No description available"


def _first_score(item: Dict[str, Any]) -> Any:
    """First alias that is present and not None, whatever its type"""
    for alias in SCORE_ALIASES:
        value = item.get(alias)
        if value is not None:
            return value
    return None


def infer_severity(item: Dict[str, Any]) -> Severity:
    """
    Derive a severity from a numeric CVSS score, falling back to a label.

    score >= 9 CRITICAL, >= 7 HIGH, >= 4 MEDIUM, > 0 LOW. A missing or
    non-numeric score falls through to the `severity` label, then UNKNOWN.
    """
    score = _first_score(item)
    if isinstance(score, numbers.Real) and not isinstance(score, bool):
        if score >= 9:
            return Severity.CRITICAL
        if score >= 7:
            return Severity.HIGH
        if score >= 4:
            return Severity.MEDIUM
        if score > 0:
            return Severity.LOW

    label = item.get("severity")
    if isinstance(label, Severity):
        label = label.value
    if isinstance(label, str) and label.upper() in SEVERITY_LABELS:
        return Severity(label.upper())

    return Severity.UNKNOWN


def normalize_item(
    raw: Dict[str, Any],
    source: str,
    placeholder: str = DEFAULT_PLACEHOLDER,
) -> Optional[CVERecord]:
    """Map one adapter item to a CVERecord, or None when it has no usable id"""
    if not isinstance(raw, dict):
        logger.debug(f"Dropping non-mapping item from {source}: {type(raw).__name__}")
        return None

    raw_id = raw.get("id")
    record_id = str(raw_id).strip() if raw_id is not None else ""
    if not record_id:
        return None

    description = raw.get("description")
    description = description.strip() if isinstance(description, str) else ""

    published = raw.get("published")
    if published is not None and not isinstance(published, str):
        published = str(published)

    raw_metadata = raw.get("metadata")
    metadata = dict(raw_metadata) if isinstance(raw_metadata, dict) else {}
    score = _first_score(raw)
    if isinstance(score, numbers.Real) and not isinstance(score, bool):
        metadata.setdefault("cvss", score)

    item_source = raw.get("source")
    return CVERecord(
        id=record_id,
        description=description or placeholder,
        severity=infer_severity(raw),
        published=published,
        source=item_source if isinstance(item_source, str) and item_source.strip() else source,
        metadata=metadata,
    )
