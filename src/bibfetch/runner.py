#!/usr/bin/env python3
"""
bibfetch — Fetch BibTeX records for DOIs and arXiv identifiers.

Every identifier given on the command line is classified as a DOI or an
arXiv id, looked up concurrently, and printed as a formatted BibTeX record
as soon as its lookup finishes:
  1) DOIs are resolved at doi.org via content negotiation,
  2) arXiv ids are looked up in the arXiv API; papers that declare a DOI
     are resolved through (1), the others get a synthesized @article.

Examples
--------
$ bibfetch 10.1103/PhysRevLett.116.061102
$ bibfetch arXiv:2105.11572 https://arxiv.org/abs/hep-th/9910001v2
$ bibfetch "math/0506203 https://doi.org/10.1002/andp.19053221004" --verbose
"""

from __future__ import annotations

import argparse
import concurrent.futures
import logging
import sys
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from bibfetch._version import __version__
from bibfetch.errors import BibfetchError
from bibfetch.gateway import RegistryGateway
from bibfetch.identifiers import classify_and_extract
from bibfetch.normalizer import RecordNormalizer
from bibfetch.utils import DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT, HttpClient


# ------------- Processing Pipeline -------------
@dataclass
class FetchResult:
    pattern: str
    record: str | None = None
    error: BibfetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def unique_patterns(patterns: Iterable[str]) -> list[str]:
    """Sort and de-duplicate input patterns, dropping blanks."""
    return sorted({p.strip() for p in patterns if p.strip()})


class BatchRunner:
    """Runs classify → fetch → normalize for many patterns concurrently.

    Each unique pattern gets its own task. A failing task yields a failed
    FetchResult and does not affect the others.
    """

    def __init__(
        self,
        gateway: RegistryGateway,
        normalizer: RecordNormalizer | None = None,
        logger: logging.Logger | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)
        self.normalizer = normalizer or RecordNormalizer(gateway, self.logger)
        self.max_workers = max(max_workers, 1)
        self.failed: list[FetchResult] = []

    def resolve_one(self, pattern: str) -> str:
        """Run the full pipeline for a single pattern.

        Raises:
            BibfetchError: Any classification, fetch or validation failure.
        """
        resolved = classify_and_extract(pattern)
        self.logger.debug("Classified %r as %s %s", pattern, resolved.kind.value, resolved.id)
        payload = self.gateway.fetch(resolved)
        return self.normalizer.normalize(resolved, payload)

    def _task(self, pattern: str) -> FetchResult:
        try:
            return FetchResult(pattern=pattern, record=self.resolve_one(pattern))
        except BibfetchError as e:
            self.logger.debug("Lookup failed for %s: %s", pattern, e)
            return FetchResult(pattern=pattern, error=e)

    def iter_results(self, patterns: Iterable[str]) -> Iterator[FetchResult]:
        """Yield one FetchResult per unique pattern, in completion order."""
        unique = unique_patterns(patterns)
        if not unique:
            return
        with concurrent.futures.ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique))) as ex:
            futures = [ex.submit(self._task, p) for p in unique]
            for fut in concurrent.futures.as_completed(futures):
                yield fut.result()

    def run(self, patterns: Iterable[str]) -> Iterator[str]:
        """Yield formatted records of successful lookups as they complete.

        Failures are logged and collected in ``failed``, which is reset on
        every call.
        """
        self.failed = []
        for result in self.iter_results(patterns):
            if result.ok:
                yield result.record  # type: ignore[misc]
            else:
                self.failed.append(result)
                self.logger.error("%s: %s", result.pattern, result.error.user_message)  # type: ignore[union-attr]


# ------------- CLI -------------
def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bibfetch",
        description="Fetch BibTeX records for DOIs and arXiv identifiers.",
    )
    p.add_argument(
        "inputs",
        nargs="+",
        metavar="IDENTIFIER",
        help="DOI(s) or arXiv identifier(s) to search for, separated by spaces.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout seconds")
    p.add_argument("--max-workers", type=int, default=DEFAULT_MAX_WORKERS, help="Max concurrent lookups")
    p.add_argument("--verbose", action="store_true", help="Verbose logging")
    return p


def init_logging(verbose: bool) -> logging.Logger:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    return logging.getLogger("bibfetch")


def split_inputs(inputs: Iterable[str]) -> list[str]:
    """Split every argument on whitespace so quoted lists work too."""
    return [tok for arg in inputs for tok in arg.split()]


def main(
    argv: list[str] | None = None,
    http_factory: Callable[[argparse.Namespace], HttpClient] | None = None,
) -> int:
    """Main entry point for the bibfetch command.

    Args:
        argv: Command-line arguments. If None, uses sys.argv.
        http_factory: Builds the HTTP client from parsed arguments.

    Returns:
        Exit code: 0 if every identifier was resolved, 1 otherwise.
    """
    args = build_arg_parser().parse_args(argv)
    logger = init_logging(args.verbose)

    patterns = split_inputs(args.inputs)
    if not patterns:
        logger.error("Missing arguments!")
        return 1

    http = http_factory(args) if http_factory else HttpClient(timeout=args.timeout)
    with http:
        runner = BatchRunner(RegistryGateway(http, logger), logger=logger, max_workers=args.max_workers)
        for record in runner.run(patterns):
            print(record, flush=True)

    return 1 if runner.failed else 0


if __name__ == "__main__":
    sys.exit(main())
