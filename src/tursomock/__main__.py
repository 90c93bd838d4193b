"""Allow ``python -m tursomock``."""

import sys

from tursomock.cli import main

sys.exit(main())
