"""Allow running pspk with ``python -m pspk``."""

import sys

from .main import main

sys.exit(main())
