"""Entry point for python -m photofilter."""

import sys

from photofilter.cli import main

if __name__ == "__main__":
    sys.exit(main())
