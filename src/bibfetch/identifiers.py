"""Classification of raw user input into DOI or arXiv identifiers.

Accepted forms include bare identifiers (``10.1000/xyz``, ``2105.11572``,
``hep-th/9910001``), prefixed ones (``doi:...``, ``arXiv:...``) and resolver or
abstract-page URLs (``https://doi.org/...``, ``https://arxiv.org/abs/...``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from bibfetch.errors import ShapeMismatchError, UnrecognizedIdentifierError
from bibfetch.utils import ARXIV_API, doi_url


class IdentifierKind(Enum):
    DOI = "doi"
    ARXIV = "arxiv"


@dataclass(frozen=True)
class PatternSet:
    """Identity marker plus identifier shapes for one identifier kind.

    Shapes are tried in declaration order; the first one that matches wins.
    """

    kind: IdentifierKind
    identity: re.Pattern[str]
    shapes: tuple[re.Pattern[str], ...]

    def recognizes(self, text: str) -> bool:
        return bool(self.identity.search(text)) or any(p.search(text) for p in self.shapes)


@dataclass(frozen=True)
class ResolvedIdentifier:
    kind: IdentifierKind
    id: str

    @property
    def url(self) -> str:
        """Registry URL this identifier is fetched from."""
        if self.kind is IdentifierKind.DOI:
            return doi_url(self.id)
        return f"{ARXIV_API}?id_list={self.id}"


# ------------- Pattern Registry -------------

DOI_PATTERNS = PatternSet(
    kind=IdentifierKind.DOI,
    identity=re.compile(r"doi(?::|.org)"),
    shapes=(
        re.compile(r"10.\d{4,9}/[-._;()/:\w\d]+"),
        # Wiley DOIs do not follow the general shape
        re.compile(r"10.1002/[^\s]+"),
    ),
)

ARXIV_PATTERNS = PatternSet(
    kind=IdentifierKind.ARXIV,
    identity=re.compile(r"(?i:arxiv)(?::|.org)"),
    shapes=(
        re.compile(r"\d{4}\.\d{4,5}(?:v\d+)?"),  # new style, e.g. 2105.11572v1
        re.compile(r"[a-z]+(?:-[a-z]+)?/\d{7}(?:v\d+)?"),  # old style, e.g. hep-th/9910001
    ),
)

# DOI is checked before arXiv
PATTERN_REGISTRY: tuple[PatternSet, ...] = (DOI_PATTERNS, ARXIV_PATTERNS)


# ------------- Extraction -------------


def extract_id(patterns: PatternSet, text: str) -> str:
    """Extract the canonical identifier from ``text`` using a pattern set.

    Args:
        patterns: Pattern set of the identifier kind
        text: Raw input (bare id, prefixed id, or URL)

    Returns:
        The match of the first shape that occurs in ``text``, with trailing
        slashes removed.

    Raises:
        ShapeMismatchError: If no shape of the set matches.
    """
    for shape in patterns.shapes:
        m = shape.search(text)
        if m:
            return m.group(0).rstrip("/")
    raise ShapeMismatchError(f"No {patterns.kind.value} identifier found in {text!r}")


def classify(pattern: str) -> PatternSet:
    """Return the pattern set of the first identifier kind recognizing ``pattern``."""
    for patterns in PATTERN_REGISTRY:
        if patterns.recognizes(pattern):
            return patterns
    raise UnrecognizedIdentifierError(f"Not a DOI or arXiv identifier: {pattern!r}")


def classify_and_extract(pattern: str) -> ResolvedIdentifier:
    """Classify raw input as DOI or arXiv and extract the canonical id.

    Raises:
        UnrecognizedIdentifierError: Neither kind recognizes the input.
        ShapeMismatchError: A marker such as ``doi.org`` matched but no id follows.
    """
    text = pattern.strip()
    patterns = classify(text)
    return ResolvedIdentifier(kind=patterns.kind, id=extract_id(patterns, text))
