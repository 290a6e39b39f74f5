"""Allow running the watchdog with ``python -m app_watchdog``."""

import sys

from app_watchdog.app import main

sys.exit(main())
