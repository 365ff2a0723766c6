"""Normalization of registry payloads into BibTeX records.

doi.org already returns BibTeX, frequently on a single line; it only gets
reformatted. The arXiv API returns an Atom feed, from which an ``@article``
record is synthesized unless the paper declares a DOI, in which case the
DOI registry's record is used instead.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime

from bibfetch.errors import EmptyFeedError, MalformedFeedError, MissingFieldError
from bibfetch.gateway import RegistryGateway
from bibfetch.identifiers import ARXIV_PATTERNS, IdentifierKind, ResolvedIdentifier, extract_id

# XML namespaces for Atom feed parsing
ATOM_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}

_FIELD_BOUNDARY_RE = re.compile(r",\s?(\w+=\{.+?\})")


# ------------- DOI Records -------------


def normalize_doi(raw: str) -> str:
    """Put each BibTeX field on its own indented line.

    Purely cosmetic: the grammar is not parsed or validated. Applying it
    to its own output changes nothing.
    """
    text = _FIELD_BOUNDARY_RE.sub(r",\n  \1", raw.strip())
    return text.replace("}}", "}\n}")


# ------------- arXiv Feed -------------


@dataclass(frozen=True)
class ArxivEntry:
    """Metadata of one arXiv paper, as needed for a citation."""

    authors: tuple[str, ...]
    published_year: int
    title: str
    arxiv_id: str
    primary_category: str | None = None
    declared_doi: str | None = None


def _text(element: ET.Element | None) -> str:
    """Extract text content from XML element."""
    return (element.text or "").strip() if element is not None else ""


def _parse_year(value: str) -> int:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value).year
    except ValueError as e:
        raise MalformedFeedError(f"Unparseable published date {value!r}") from e


def _has_arxiv_extension(entry_el: ET.Element) -> bool:
    prefix = "{%s}" % ATOM_NS["arxiv"]
    return any(child.tag.startswith(prefix) for child in entry_el)


def parse_arxiv_feed(xml_text: str) -> ArxivEntry:
    """Parse the first entry of an arXiv API Atom feed.

    Raises:
        MalformedFeedError: Not XML, or the entry lacks the arXiv extension elements.
        EmptyFeedError: The feed has no entry.
        MissingFieldError: Authors, published date or id are missing.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise MalformedFeedError(f"arXiv response is not valid XML: {e}") from e

    entry_el = root.find("atom:entry", ATOM_NS)
    if entry_el is None:
        raise EmptyFeedError("arXiv feed contains no entry")

    authors = tuple(_text(a) for a in entry_el.findall("atom:author/atom:name", ATOM_NS))
    published = _text(entry_el.find("atom:published", ATOM_NS))
    entry_id = _text(entry_el.find("atom:id", ATOM_NS))
    if not authors or not published or not entry_id:
        raise MissingFieldError("arXiv entry lacks authors, published date or id")

    if not _has_arxiv_extension(entry_el):
        raise MalformedFeedError(f"arXiv entry {entry_id} has no arxiv: extension elements")

    categories = [c.attrib.get("term", "") for c in entry_el.findall("atom:category", ATOM_NS)]
    title_el = entry_el.find("atom:title", ATOM_NS)
    title = (title_el.text or "") if title_el is not None else ""

    return ArxivEntry(
        authors=authors,
        published_year=_parse_year(published),
        title=title,
        arxiv_id=entry_id,
        primary_category=categories[0] if categories else None,
        declared_doi=_text(entry_el.find("arxiv:doi", ATOM_NS)) or None,
    )


# ------------- arXiv Records -------------


def format_authors(names: tuple[str, ...] | list[str]) -> tuple[str, str]:
    """Render feed author names as a BibTeX author field.

    Returns:
        Tuple of (first author's surname, 'Surname, Given and ...' string)
    """
    rendered: list[str] = []
    for name in names:
        toks = name.split()
        if not toks:
            raise MissingFieldError("arXiv entry has an author without a name")
        rendered.append(f"{toks[-1]}, {' '.join(toks[:-1])}")
    first_surname = names[0].split()[-1]
    return first_surname, " and ".join(rendered)


def synthesize_arxiv_bibtex(entry: ArxivEntry) -> str:
    """Build a formatted ``@article`` record from arXiv metadata.

    Raises:
        MissingFieldError: An author name is blank or the entry has no category.
    """
    if not entry.primary_category:
        raise MissingFieldError(f"arXiv entry {entry.arxiv_id} has no category")
    firstauth, authors = format_authors(entry.authors)
    year = entry.published_year
    key = f"{firstauth}_{year}"
    title = entry.title.replace("\n ", "")
    eprint = extract_id(ARXIV_PATTERNS, entry.arxiv_id)

    formatted = (
        f"@article{{{key},title={{{title}}},author={{{authors}}},year={{{year}}},"
        f"eprint={{{eprint}}},archivePrefix={{arXiv}},primaryClass={{{entry.primary_category}}}}}"
    )
    return normalize_doi(formatted)


class RecordNormalizer:
    """Turns raw registry payloads into formatted BibTeX records."""

    def __init__(self, gateway: RegistryGateway, logger: logging.Logger | None = None) -> None:
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def normalize(self, resolved: ResolvedIdentifier, payload: str) -> str:
        if resolved.kind is IdentifierKind.DOI:
            return normalize_doi(payload)
        return self.normalize_arxiv(payload)

    def normalize_arxiv(self, feed_text: str) -> str:
        """Normalize an arXiv feed, following the paper's DOI when it declares one.

        Published papers carry ``<arxiv:doi>``; their citation comes from the
        DOI registry and no record is synthesized from preprint metadata.
        """
        entry = parse_arxiv_feed(feed_text)
        if entry.declared_doi:
            self.logger.debug("arXiv entry %s declares DOI %s", entry.arxiv_id, entry.declared_doi)
            return normalize_doi(self.gateway.fetch_doi(entry.declared_doi))
        return synthesize_arxiv_bibtex(entry)
