"""Allow ``python -m addin_compat``."""

import sys

from .cli import main

sys.exit(main())
