# src/selective_trading/utils/phone.py
"""Phone number canonicalization shared by storage and lookup paths."""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: str) -> str:
    """Return ``phone`` with every non-digit character removed.

    Every code path that stores or looks up a phone number must go through
    this function, otherwise uniqueness and code matching break.

    Raises:
        ValueError: If no digits remain.
    """
    cleaned = _NON_DIGITS.sub("", phone or "")
    if not cleaned:
        raise ValueError("Phone number must contain digits")
    return cleaned
