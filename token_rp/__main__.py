# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

import sys

from .main import main

sys.exit(main())
