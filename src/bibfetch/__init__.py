"""bibfetch - BibTeX records for DOIs and arXiv identifiers.

This package provides tools for:
- Classifying pasted identifiers (bare ids, prefixed ids, URLs) as DOI or arXiv
- Fetching citation data from doi.org and the arXiv API
- Normalizing the results into formatted BibTeX records

Example usage:
    from bibfetch import BatchRunner, HttpClient, RegistryGateway

    with HttpClient() as http:
        runner = BatchRunner(RegistryGateway(http))
        for record in runner.run(["arXiv:2105.11572", "10.1000/xyz"]):
            print(record)
"""

from bibfetch._version import __version__

# Errors
from bibfetch.errors import (
    BibfetchError,
    ClassificationError,
    EmptyFeedError,
    FetchError,
    MalformedFeedError,
    MissingFieldError,
    NotFoundError,
    ShapeMismatchError,
    UnrecognizedIdentifierError,
    ValidationError,
)
from bibfetch.gateway import RegistryGateway

# Identifier classification
from bibfetch.identifiers import (
    ARXIV_PATTERNS,
    DOI_PATTERNS,
    IdentifierKind,
    PatternSet,
    ResolvedIdentifier,
    classify_and_extract,
    extract_id,
)

# Record normalization
from bibfetch.normalizer import (
    ArxivEntry,
    RecordNormalizer,
    normalize_doi,
    parse_arxiv_feed,
    synthesize_arxiv_bibtex,
)

# Batch processing
from bibfetch.runner import BatchRunner, FetchResult, unique_patterns

# Shared utilities
from bibfetch.utils import HttpClient, RateLimiter, RateLimiterRegistry, doi_url

__all__ = [
    # Version
    "__version__",
    # Errors
    "BibfetchError",
    "ClassificationError",
    "EmptyFeedError",
    "FetchError",
    "MalformedFeedError",
    "MissingFieldError",
    "NotFoundError",
    "ShapeMismatchError",
    "UnrecognizedIdentifierError",
    "ValidationError",
    # Identifiers
    "ARXIV_PATTERNS",
    "DOI_PATTERNS",
    "IdentifierKind",
    "PatternSet",
    "ResolvedIdentifier",
    "classify_and_extract",
    "extract_id",
    # Registry access
    "RegistryGateway",
    # Normalization
    "ArxivEntry",
    "RecordNormalizer",
    "normalize_doi",
    "parse_arxiv_feed",
    "synthesize_arxiv_bibtex",
    # Batch processing
    "BatchRunner",
    "FetchResult",
    "unique_patterns",
    # Utilities
    "HttpClient",
    "RateLimiter",
    "RateLimiterRegistry",
    "doi_url",
]
