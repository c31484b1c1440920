"""Allow running as `python -m jetson_sources`."""

import sys

from jetson_sources.main import main

sys.exit(main())
