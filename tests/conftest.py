"""Shared fixtures for bibfetch tests."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

import httpx
import pytest

from bibfetch import HttpClient, IdentifierKind, NotFoundError, RegistryGateway

ATOM_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">\n'
    '  <link href="http://arxiv.org/api/query?id_list=x" rel="self" type="application/atom+xml"/>\n'
    '  <title type="html">ArXiv Query: search_query=&amp;id_list=x</title>\n'
    "  <id>http://arxiv.org/api/cHxbiOdZaP56ODnBPIenZhzg5f8</id>\n"
    "  <updated>2021-05-25T00:00:00-04:00</updated>\n"
)

SAMPLE_DOI_BIBTEX = (
    " @article{Doe_2020, title={A Study of Things}, volume={1}, DOI={10.1000/xyz}, "
    "journal={Journal of Examples}, author={Doe, Jane and Smith, John}, year={2020}}\n"
)


def build_feed(
    authors: Sequence[str] = ("Jane Q. Doe", "John Smith"),
    published: Optional[str] = "2005-06-10T08:32:25Z",
    title: str = "Some Title\n  Continued Over Two Lines",
    entry_id: Optional[str] = "http://arxiv.org/abs/math/0506203v1",
    categories: Sequence[str] = ("math.CO", "math.PR"),
    doi: Optional[str] = None,
    extension: bool = True,
    with_entry: bool = True,
) -> str:
    """Build an arXiv API Atom feed with a single entry."""
    if not with_entry:
        return ATOM_HEADER + "</feed>\n"
    parts = ["  <entry>"]
    if entry_id is not None:
        parts.append(f"    <id>{entry_id}</id>")
    parts.append("    <updated>2005-06-10T08:32:25Z</updated>")
    if published is not None:
        parts.append(f"    <published>{published}</published>")
    parts.append(f"    <title>{title}</title>")
    parts.append("    <summary>An abstract.</summary>")
    for name in authors:
        parts.append(f"    <author>\n      <name>{name}</name>\n    </author>")
    if extension:
        if doi:
            parts.append(f"    <arxiv:doi>{doi}</arxiv:doi>")
        parts.append("    <arxiv:comment>12 pages</arxiv:comment>")
        primary = categories[0] if categories else "math.CO"
        parts.append(f'    <arxiv:primary_category term="{primary}" scheme="http://arxiv.org/schemas/atom"/>')
    for term in categories:
        parts.append(f'    <category term="{term}" scheme="http://arxiv.org/schemas/atom"/>')
    parts.append("  </entry>")
    return ATOM_HEADER + "\n".join(parts) + "\n</feed>\n"


@pytest.fixture
def make_feed():
    """Factory fixture for arXiv Atom feeds."""
    return build_feed


@pytest.fixture
def doi_bibtex():
    return SAMPLE_DOI_BIBTEX


@pytest.fixture
def logger():
    """Create a test logger."""
    return logging.getLogger("test")


class RecordingTransport:
    """httpx handler serving canned doi.org and arXiv responses."""

    def __init__(self, dois: Dict[str, str], feeds: Dict[str, str]):
        self.dois = dois
        self.feeds = feeds
        self.requests: List[httpx.Request] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        if request.url.host == "doi.org":
            doi = request.url.path.lstrip("/")
            if doi in self.dois:
                return httpx.Response(200, text=self.dois[doi])
            return httpx.Response(404, text="DOI Not Found: this DOI cannot be found in the DOI System")
        if request.url.host == "export.arxiv.org":
            arxiv_id = request.url.params.get("id_list", "")
            return httpx.Response(200, text=self.feeds.get(arxiv_id, build_feed(with_entry=False)))
        return httpx.Response(500)


@pytest.fixture
def mock_http():
    """Factory fixture: HttpClient backed by httpx.MockTransport."""

    def _create(dois: Optional[Dict[str, str]] = None, feeds: Optional[Dict[str, str]] = None):
        handler = RecordingTransport(dois or {}, feeds or {})
        return HttpClient(transport=httpx.MockTransport(handler)), handler

    return _create


class FakeGateway(RegistryGateway):
    """Fake gateway returning canned payloads keyed by identifier.

    ``delays`` maps identifiers to seconds slept before answering.
    """

    def __init__(self, payloads: Dict[str, str], delays: Optional[Dict[str, float]] = None):
        # Don't call parent __init__ to avoid setting up real HTTP
        self.logger = logging.getLogger("test")
        self.payloads = payloads
        self.delays = delays or {}
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def fetch(self, resolved):
        with self._lock:
            self.calls.append((resolved.kind, resolved.id))
        if resolved.id in self.delays:
            time.sleep(self.delays[resolved.id])
        if resolved.id not in self.payloads:
            raise NotFoundError(f"no canned payload for {resolved.id}")
        return self.payloads[resolved.id]

    def doi_calls(self) -> List[str]:
        return [i for kind, i in self.calls if kind is IdentifierKind.DOI]


@pytest.fixture
def fake_gateway() -> Callable[..., FakeGateway]:
    """Factory fixture for creating fake gateways."""

    def _create(
        payloads: Optional[Dict[str, str]] = None, delays: Optional[Dict[str, float]] = None
    ) -> FakeGateway:
        return FakeGateway(payloads or {}, delays)

    return _create
