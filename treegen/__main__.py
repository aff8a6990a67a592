"""Allow ``python -m treegen``."""

import sys

from treegen.generator import main

sys.exit(main())
