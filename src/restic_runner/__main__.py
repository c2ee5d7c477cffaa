"""restic-runner: restic_runner/__main__.py."""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
