"""Allow ``python -m fenrir``."""

from __future__ import annotations

import sys

from fenrir.cli import main

if __name__ == "__main__":
    sys.exit(main())
