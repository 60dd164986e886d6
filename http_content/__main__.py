"""
Entry point for ``python -m http_content`` and the ``http-content`` script.
"""

import logging
import sys

from rich.console import Console

from http_content.cli.app import app
from http_content.cli.formatters import format_error_with_suggestions
from http_content.exceptions import HttpContentError

log = logging.getLogger("http_content")


def main() -> None:
    console = Console(stderr=True)
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)
    except HttpContentError as e:
        # Commands render their own errors; this catches ones raised outside them.
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        log.debug("Unhandled error", exc_info=True)
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        sys.exit(1)


if __name__ == "__main__":
    main()
