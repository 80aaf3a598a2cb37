"""
Advanced search query parsing and matching

Syntax:
    ssl                 term must appear
    +ssl                same as a bare term
    -heartbleed         term must not appear
    "buffer overflow"   exact phrase must appear
    openssl|gnutls      at least one alternative must appear

Matching is plain substring containment against lower-cased text, so a term
can match inside a longer word.
"""
import re
from dataclasses import dataclass, field
from typing import List

from globalcve.models.cve import CVERecord

CVE_ID_PATTERN = re.compile(r"^CVE-\d{4}-\d{4,}$", re.IGNORECASE)


@dataclass
class QueryTerm:
    """Parsed advanced query"""
    include: List[str] = field(default_factory=list)  # AND
    exclude: List[str] = field(default_factory=list)  # NOT
    exact: List[str] = field(default_factory=list)    # quoted phrase AND
    any: List[str] = field(default_factory=list)      # OR group

    def is_empty(self) -> bool:
        return not (self.include or self.exclude or self.exact or self.any)


def is_exact_cve_id(query: str) -> bool:
    return bool(query) and CVE_ID_PATTERN.match(query.strip()) is not None


def _classify_token(token: str, terms: QueryTerm) -> None:
    token = token.strip()
    if not token:
        return

    if token.startswith("-"):
        term = token[1:].strip().lower()
        if term:
            terms.exclude.append(term)
    elif token.startswith("+"):
        term = token[1:].strip().lower()
        if term:
            terms.include.append(term)
    elif "|" in token:
        terms.any.extend(t.strip().lower() for t in token.split("|") if t.strip())
    else:
        terms.include.append(token.lower())


def parse_advanced_query(query: str) -> QueryTerm:
    """Parse a query string in a single quote-aware left-to-right scan"""
    terms = QueryTerm()
    if not query:
        return terms

    current = []
    in_quotes = False

    for char in query:
        if char == '"':
            if in_quotes:
                phrase = "".join(current).strip().lower()
                if phrase:
                    terms.exact.append(phrase)
            else:
                # An opening quote ends any token glued to it
                _classify_token("".join(current), terms)
            current = []
            in_quotes = not in_quotes
            continue

        if char.isspace() and not in_quotes:
            _classify_token("".join(current), terms)
            current = []
            continue

        current.append(char)

    remainder = "".join(current)
    if in_quotes:
        # Unterminated quote: keep what was typed as a phrase
        phrase = remainder.strip().lower()
        if phrase:
            terms.exact.append(phrase)
    else:
        _classify_token(remainder, terms)

    return terms


def matches_query(text: str, terms: QueryTerm) -> bool:
    normalized = text.lower()

    if any(phrase not in normalized for phrase in terms.exact):
        return False
    if any(term in normalized for term in terms.exclude):
        return False
    if any(term not in normalized for term in terms.include):
        return False
    if terms.any and not any(term in normalized for term in terms.any):
        return False
    return True


def searchable_text(record: CVERecord) -> str:
    return f"{record.description} {record.id} {record.source}".lower()


def record_matches(record: CVERecord, query: str, terms: QueryTerm) -> bool:
    """Exact-id short-circuit first, boolean matcher otherwise"""
    if is_exact_cve_id(query):
        return record.id.upper() == query.strip().upper()
    return matches_query(searchable_text(record), terms)
