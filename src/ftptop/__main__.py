"""Run ftptop with ``python -m ftptop``."""

import sys

from ftptop.cli import main

if __name__ == "__main__":
    sys.exit(main())
