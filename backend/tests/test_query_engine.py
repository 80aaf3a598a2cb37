from globalcve.services.query_engine import (
    is_exact_cve_id,
    matches_query,
    parse_advanced_query,
    record_matches,
    searchable_text,
)

from conftest import make_record


def test_parse_mixed_query():
    terms = parse_advanced_query('ssl -heartbleed "buffer overflow"')

    assert terms.include == ["ssl"]
    assert terms.exclude == ["heartbleed"]
    assert terms.exact == ["buffer overflow"]
    assert terms.any == []


def test_mixed_query_matching():
    terms = parse_advanced_query('ssl -heartbleed "buffer overflow"')

    assert matches_query("buffer overflow in ssl library", terms)
    assert not matches_query("heartbleed buffer overflow in ssl library", terms)
    assert not matches_query("overflow of a buffer in ssl", terms)


def test_plus_and_bare_tokens_are_includes():
    terms = parse_advanced_query("+Kernel linux")
    assert terms.include == ["kernel", "linux"]


def test_pipe_alternatives():
    terms = parse_advanced_query("openssl|GnuTLS")

    assert terms.any == ["openssl", "gnutls"]
    assert matches_query("flaw in gnutls handshake", terms)
    assert not matches_query("flaw in nss handshake", terms)


def test_unterminated_quote_flushes_as_phrase():
    terms = parse_advanced_query('apache "remote code')

    assert terms.include == ["apache"]
    assert terms.exact == ["remote code"]


def test_any_whitespace_separates_tokens():
    terms = parse_advanced_query("sql\tinjection\nwordpress")
    assert terms.include == ["sql", "injection", "wordpress"]


def test_bare_dash_and_plus_are_dropped():
    terms = parse_advanced_query("- + xss")

    assert terms.include == ["xss"]
    assert terms.exclude == []


def test_empty_query_matches_everything():
    terms = parse_advanced_query("")

    assert terms.is_empty()
    assert matches_query("anything at all", terms)


def test_substring_semantics():
    terms = parse_advanced_query("ssl")
    assert matches_query("OpenSSL 3.0", terms)


def test_exact_cve_id_detection():
    assert is_exact_cve_id("CVE-2024-3094")
    assert is_exact_cve_id("  cve-2021-44228 ")
    assert not is_exact_cve_id("CVE-2024-309")
    assert not is_exact_cve_id("CVE-2024-3094 xz")
    assert not is_exact_cve_id("")


def test_exact_id_short_circuits_boolean_matching():
    query = "cve-2024-3094"
    terms = parse_advanced_query(query)

    same = make_record("CVE-2024-3094", description="Backdoor in xz")
    mentions = make_record("CVE-2024-9999", description="Related to CVE-2024-3094")

    assert record_matches(same, query, terms)
    assert not record_matches(mentions, query, terms)


def test_searchable_text_includes_source():
    record = make_record("CVE-2024-0001", source="JVN", description="Flaw")
    assert searchable_text(record) == "flaw cve-2024-0001 jvn"
