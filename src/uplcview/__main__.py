"""Module entry-point for ``python -m uplcview``."""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
