# -*- coding: utf-8 -*-
# Copyright (c) 2023, IMOGI and contributors
# For license information, please see license.txt

"""
ESC/POS control sequences embedded in receipt text.

The sequences are part of the wire format: they are written to the printer
verbatim together with the visible text.
"""

import re

ESC = "\x1B"

INIT = ESC + "@"  # ESC @ - Initialize printer

FONT_NORMAL = ESC + "!\x00"  # ESC ! 0 - Font A, normal size
FONT_NARROW = ESC + "!\x01"  # ESC ! 1 - Font B

ALIGN_LEFT = ESC + "a\x00"  # ESC a 0
ALIGN_CENTER = ESC + "a\x01"  # ESC a 1
ALIGN_RIGHT = ESC + "a\x02"  # ESC a 2

BOLD_ON = ESC + "E\x01"  # ESC E 1
BOLD_OFF = ESC + "E\x00"  # ESC E 0

_CONTROL_RE = re.compile(
    re.escape(ESC) + r"(?:@|[!aE][\x00-\xff])"
)


def strip_control_codes(text: str) -> str:
    """Remove the control sequences above, leaving only printable text."""
    if not text:
        return ""
    return _CONTROL_RE.sub("", text)
