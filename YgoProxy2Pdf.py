#!/usr/bin/env python3
"""
YgoProxy2Pdf: turn a YDK deck list into printable proxy sheets.
"""

import sys

from main_logic import main

if __name__ == "__main__":
    sys.exit(main())
