from globalcve.core.config import Settings
from globalcve.services.providers.registry import build_latest_adapters, build_search_adapters

from conftest import StaticKEVFeed

SEARCH_ORDER = [
    "NVD", "CIRCL", "JVN", "CNNVD", "EXPLOITDB", "ANDROID", "APPLE", "CERT-FR",
    "LENOVO.THINKPAD", "ORACLE.CPU", "VMWARE", "CISCO", "REDHAT", "UBUNTU",
    "DEBIAN", "SAP", "CVE.ORG", "ARCHIVE",
]


def names(adapters):
    return [a.name for a in adapters]


def test_search_order(test_settings):
    assert names(build_search_adapters(test_settings, StaticKEVFeed())) == SEARCH_ORDER


def test_optional_sources_append_last():
    settings = Settings(GITHUB_TOKEN="ghp_x", SURFACE_KEV_RECORDS=True, DISABLED_SOURCES=[])

    assert names(build_search_adapters(settings, StaticKEVFeed()))[-2:] == ["GITHUB", "KEV"]


def test_disabled_sources_are_removed():
    settings = Settings(DISABLED_SOURCES=["cnnvd", " Apple "], GITHUB_TOKEN=None, SURFACE_KEV_RECORDS=False)

    search = names(build_search_adapters(settings, StaticKEVFeed()))
    assert "CNNVD" not in search
    assert "APPLE" not in search
    assert len(search) == len(SEARCH_ORDER) - 2


def test_latest_skips_nvd_without_key(test_settings):
    assert names(build_latest_adapters(test_settings, StaticKEVFeed())) == [
        "JVN", "EXPLOITDB", "ANDROID", "APPLE", "CERT-FR", "CISCO", "REDHAT", "UBUNTU", "DEBIAN",
    ]

    keyed = Settings(NVD_API_KEY="key", DISABLED_SOURCES=[])
    assert names(build_latest_adapters(keyed, StaticKEVFeed()))[0] == "NVD"
