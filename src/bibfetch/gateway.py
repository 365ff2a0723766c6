"""Remote registry access for resolved identifiers."""

from __future__ import annotations

import logging

import httpx

from bibfetch.errors import NotFoundError
from bibfetch.identifiers import IdentifierKind, ResolvedIdentifier
from bibfetch.utils import (
    ARXIV_API,
    ATOM_ACCEPT,
    BIBTEX_ACCEPT,
    HttpClient,
    arxiv_query_params,
    doi_url,
)

# doi.org answers unknown DOIs with an HTML page containing this text
DOI_NOT_FOUND_MARKER = "cannot be found"


class RegistryGateway:
    """Fetches raw payloads from doi.org and the arXiv API.

    DOI identifiers are resolved by content negotiation and yield a single
    BibTeX entry as plain text. arXiv identifiers yield an Atom feed.
    """

    def __init__(self, http: HttpClient, logger: logging.Logger | None = None) -> None:
        self.http = http
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self, resolved: ResolvedIdentifier) -> str:
        """Fetch the raw payload for an identifier.

        Returns:
            BibTeX text for DOIs, Atom XML for arXiv ids.

        Raises:
            NotFoundError: Transport failure, non-2xx status, or unknown DOI.
        """
        self.logger.debug("Requesting %s", resolved.url)
        try:
            if resolved.kind is IdentifierKind.DOI:
                resp = self.http.get(doi_url(resolved.id), accept=BIBTEX_ACCEPT, service="doi")
            else:
                resp = self.http.get(
                    ARXIV_API, params=arxiv_query_params(resolved.id), accept=ATOM_ACCEPT, service="arxiv"
                )
        except httpx.HTTPError as e:
            raise NotFoundError(f"Request for {resolved.id} failed: {e}") from e

        if not resp.is_success:
            raise NotFoundError(f"{resolved.url} returned HTTP {resp.status_code}")

        text = resp.content.decode("utf-8", errors="replace")
        if resolved.kind is IdentifierKind.DOI and DOI_NOT_FOUND_MARKER in text:
            raise NotFoundError(f"DOI {resolved.id} cannot be found")
        return text

    def fetch_doi(self, doi: str) -> str:
        """Fetch the BibTeX text of a DOI taken verbatim from another record."""
        return self.fetch(ResolvedIdentifier(kind=IdentifierKind.DOI, id=doi))
