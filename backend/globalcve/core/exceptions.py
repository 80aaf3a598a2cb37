"""
Exceptions raised by source adapters

Hierarchy:
- SourceError (base)
  ├── SourceFetchError (transport errors, non-2xx responses)
  ├── SourceParseError (payload could not be interpreted)
  └── SourceTimeoutError (adapter exceeded its time budget)

Adapters raise these freely; the fan-out dispatcher catches every one of them
and turns it into an empty contribution.
"""
from typing import Any, Dict, Optional


class SourceError(Exception):
    """Base exception for all source adapter failures"""

    def __init__(self, message: str, source_name: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.source_name = source_name
        self.details = details or {}
        super().__init__(message)

    def __str__(self):
        if self.source_name:
            return f"[{self.source_name}] {super().__str__()}"
        return super().__str__()


class SourceFetchError(SourceError):
    """Raised when a feed cannot be retrieved"""

    def __init__(self, message: str, source_name: Optional[str] = None,
                 status_code: Optional[int] = None, url: Optional[str] = None, **kwargs):
        self.status_code = status_code
        self.url = url
        details = {"status_code": status_code, "url": url, **kwargs}
        super().__init__(message, source_name, details)


class SourceParseError(SourceError):
    """Raised when a feed payload cannot be parsed"""

    def __init__(self, message: str, source_name: Optional[str] = None,
                 raw_data_sample: Optional[str] = None, **kwargs):
        self.raw_data_sample = raw_data_sample
        details = {"raw_data_sample": raw_data_sample, **kwargs}
        super().__init__(message, source_name, details)


class SourceTimeoutError(SourceError):
    """Raised when an adapter exceeds its time budget"""

    def __init__(self, source_name: str, timeout: float):
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:.1f}s", source_name, {"timeout": timeout})


class ClientDisconnected(Exception):
    """Raised when the inbound client goes away before the response is ready"""
