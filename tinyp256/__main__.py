"""
Copyright (c) 2024, the tinyp256 developers
See LICENSE for details
"""

import sys

from tinyp256.app import main


sys.exit(main())
