#!/usr/bin/env python3
"""CLI entry point for bibfetch command.

Prints BibTeX records for DOIs and arXiv identifiers.
"""

import sys


def main() -> None:
    """Entry point for bibfetch command."""
    from bibfetch.runner import main as runner_main

    sys.exit(runner_main())


if __name__ == "__main__":
    main()
