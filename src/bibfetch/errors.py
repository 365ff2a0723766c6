"""Error taxonomy for identifier resolution.

Every failure raised while classifying, fetching or normalizing a single
identifier derives from :class:`BibfetchError`. Each class carries the short
``user_message`` shown on the command line; the exception text itself keeps the
details for logs.
"""

from __future__ import annotations

INVALID_INPUT_MESSAGE = "Please enter a valid DOI or arXiv ID!"
INVALID_ID_MESSAGE = "Invalid DOI or arXiv ID!"


class BibfetchError(Exception):
    """Base class for all per-identifier failures."""

    user_message = INVALID_ID_MESSAGE


# ------------- Classification -------------


class ClassificationError(BibfetchError):
    """The input could not be turned into a DOI or arXiv identifier."""


class UnrecognizedIdentifierError(ClassificationError):
    """Input matches neither a DOI nor an arXiv marker or shape."""

    user_message = INVALID_INPUT_MESSAGE


class ShapeMismatchError(ClassificationError):
    """An identity marker matched but no identifier shape did (e.g. ``doi:abc``)."""


# ------------- Fetching -------------


class FetchError(BibfetchError):
    """The remote registry could not deliver a payload."""


class NotFoundError(FetchError):
    """Transport failure, non-2xx status, or the registry denies the identifier."""


# ------------- Validation -------------


class ValidationError(BibfetchError):
    """A payload was received but is structurally incomplete."""


class EmptyFeedError(ValidationError):
    """The arXiv feed contains no entry."""


class MissingFieldError(ValidationError):
    """A required field (author, published date, id, category) is absent."""


class MalformedFeedError(ValidationError):
    """The arXiv response is not a well-formed Atom feed with the arXiv extension."""
