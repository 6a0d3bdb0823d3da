"""Allow ``python -m queso_cli``."""

import sys

from queso_cli.cli import main

if __name__ == "__main__":
    sys.exit(main())
