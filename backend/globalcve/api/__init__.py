# API module
from globalcve.api import cves

__all__ = [
    "cves",
]
