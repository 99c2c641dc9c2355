"""Allow ``python -m metabase2git``."""

import sys

from metabase2git.cli import main

if __name__ == "__main__":
    sys.exit(main())
