"""Entry point for ``python -m gridagg``."""

import sys

from gridagg.cli import main

if __name__ == "__main__":
    sys.exit(main())
