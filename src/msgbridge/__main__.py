"""Allow ``python -m msgbridge``."""

import sys

from msgbridge.cli import main

sys.exit(main())
