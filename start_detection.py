#!/usr/bin/env python3
"""Entry point for the Pot Overlay Detection system."""

import sys

from pot_overlay_detection.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
