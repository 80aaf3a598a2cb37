"""
Vulnerability record, KEV entry and statistics models
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from dateutil import parser as dateutil_parser
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Canonical severity levels"""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNKNOWN = "UNKNOWN"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a feed-supplied date into an aware datetime.

    Returns None for anything unparsable; naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = dateutil_parser.parse(text)
            except (ValueError, OverflowError):
                return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CVERecord(BaseModel):
    """Canonical vulnerability record every source is normalized into"""
    id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    severity: Severity = Severity.UNKNOWN
    published: Optional[str] = None  # Raw feed value; may be unparsable
    source: str
    kev: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def published_at(self) -> Optional[datetime]:
        return parse_timestamp(self.published)

    def published_ms(self) -> Optional[float]:
        """Publish date as epoch milliseconds, None when unparsable"""
        parsed = self.published_at()
        if parsed is None:
            return None
        return parsed.timestamp() * 1000


class KEVEntry(BaseModel):
    """Entry of the CISA Known Exploited Vulnerabilities catalogue"""
    cve_id: str = Field(..., alias="cveID")
    vulnerability_name: Optional[str] = Field(None, alias="vulnerabilityName")
    date_added: Optional[str] = Field(None, alias="dateAdded")
    due_date: Optional[str] = Field(None, alias="dueDate")
    required_action: Optional[str] = Field(None, alias="requiredAction")
    vendor_project: Optional[str] = Field(None, alias="vendorProject")
    product: Optional[str] = None
    short_description: Optional[str] = Field(None, alias="shortDescription")

    class Config:
        populate_by_name = True

    def search_text(self) -> str:
        parts = [
            self.cve_id,
            self.vendor_project,
            self.product,
            self.vulnerability_name,
            self.short_description,
        ]
        return " ".join(p for p in parts if p).lower()


class VendorCount(BaseModel):
    vendor: str
    count: int


def _empty_severity_counts() -> Dict[str, int]:
    return {severity.value: 0 for severity in Severity}


class CVEStats(BaseModel):
    """Distribution metrics over a filtered result set"""
    total_count: int = 0
    by_severity: Dict[str, int] = Field(default_factory=_empty_severity_counts)
    by_source: Dict[str, int] = Field(default_factory=dict)
    by_date: Dict[str, int] = Field(default_factory=dict)
    exploit_count: int = 0
    kev_count: int = 0
    top_vendors: List[VendorCount] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CVESearchResponse(BaseModel):
    """Response body of GET /api/cves"""
    query: str
    results: List[CVERecord]
    stats: CVEStats
    total: int
    page: int
    total_pages: int

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LatestCVEsResponse(BaseModel):
    """Response body of GET /api/latest-cves"""
    results: List[CVERecord]
    stats: CVEStats
    total: int
