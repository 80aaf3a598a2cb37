"""
Ordered adapter lists for the search and latest endpoints

Deduplication keeps the last record per id, so an adapter later in these
lists overrides an earlier one for the same CVE.
"""
import logging
from typing import List

from globalcve.core.config import Settings
from globalcve.services.kev_index import KEVFeed
from globalcve.services.providers.android import AndroidBulletinAdapter
from globalcve.services.providers.apple import AppleAdvisoryAdapter
from globalcve.services.providers.base import SourceAdapter
from globalcve.services.providers.certfr import CertFRAdapter
from globalcve.services.providers.circl import CIRCLAdapter
from globalcve.services.providers.cisco import CiscoAdvisoryAdapter
from globalcve.services.providers.cnnvd import CNNVDAdapter
from globalcve.services.providers.debian import DebianAdapter
from globalcve.services.providers.exploitdb import ExploitDBAdapter
from globalcve.services.providers.github import GitHubAdvisoryAdapter
from globalcve.services.providers.globalcve import ArchiveAdapter, CVEOrgAdapter
from globalcve.services.providers.jvn import JVNAdapter
from globalcve.services.providers.kev import KEVSourceAdapter
from globalcve.services.providers.lenovo import ThinkPadAdapter
from globalcve.services.providers.nvd import NVDAdapter
from globalcve.services.providers.oracle import OracleCPUAdapter
from globalcve.services.providers.redhat import RedHatAdapter
from globalcve.services.providers.sap import SAPNotesAdapter
from globalcve.services.providers.ubuntu import UbuntuAdapter
from globalcve.services.providers.vmware import VMwareAdvisoryAdapter

logger = logging.getLogger(__name__)


def _without_disabled(adapters: List[SourceAdapter], settings: Settings) -> List[SourceAdapter]:
    disabled = {name.strip().upper() for name in settings.DISABLED_SOURCES if name.strip()}
    if not disabled:
        return adapters

    enabled = [a for a in adapters if a.name.upper() not in disabled]
    logger.debug(f"Disabled sources: {sorted(disabled)}")
    return enabled


def build_search_adapters(settings: Settings, kev_feed: KEVFeed) -> List[SourceAdapter]:
    """Adapters consulted by /api/cves, in merge order"""
    adapters: List[SourceAdapter] = [
        NVDAdapter(api_key=settings.NVD_API_KEY, pages=settings.NVD_PAGES),
        CIRCLAdapter(),
        JVNAdapter(),
        CNNVDAdapter(),
        ExploitDBAdapter(),
        AndroidBulletinAdapter(months=settings.ANDROID_BULLETIN_MONTHS),
        AppleAdvisoryAdapter(max_items=settings.APPLE_MAX_ITEMS),
        CertFRAdapter(),
        ThinkPadAdapter(),
        OracleCPUAdapter(),
        VMwareAdvisoryAdapter(),
        CiscoAdvisoryAdapter(),
        RedHatAdapter(),
        UbuntuAdapter(),
        DebianAdapter(),
        SAPNotesAdapter(),
        CVEOrgAdapter(),
        ArchiveAdapter(),
    ]
    if settings.GITHUB_TOKEN:
        adapters.append(GitHubAdvisoryAdapter(settings.GITHUB_TOKEN))
    if settings.SURFACE_KEV_RECORDS:
        adapters.append(KEVSourceAdapter(kev_feed))

    return _without_disabled(adapters, settings)


def build_latest_adapters(settings: Settings, kev_feed: KEVFeed) -> List[SourceAdapter]:
    """Adapters consulted by /api/latest-cves, in merge order"""
    adapters: List[SourceAdapter] = []
    # NVD without a key is too slow and rate limited for unfiltered browsing
    if settings.NVD_API_KEY:
        adapters.append(NVDAdapter(api_key=settings.NVD_API_KEY, pages=1))

    adapters.extend([
        JVNAdapter(),
        ExploitDBAdapter(),
        AndroidBulletinAdapter(months=settings.ANDROID_BULLETIN_MONTHS),
        AppleAdvisoryAdapter(max_items=settings.APPLE_MAX_ITEMS),
        CertFRAdapter(),
        CiscoAdvisoryAdapter(),
        RedHatAdapter(),
        UbuntuAdapter(),
        DebianAdapter(),
    ])
    return _without_disabled(adapters, settings)
