"""Allow running as ``python -m manager_deployer``."""

import sys

from .cli import main

sys.exit(main())
