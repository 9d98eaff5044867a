"""
Phone number normalization.

Every phone number stored, cached, or sent to the OTP provider goes through
``normalize_phone`` so that the verify, register and reset steps all key on
the same digits-only, country-prefixed form (e.g. ``919876543210``).
"""
from __future__ import annotations

import re

from app.auth.constants import NATIONAL_NUMBER_MAX_DIGITS

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: str | None) -> str:
    if not value:
        return ""
    return _NON_DIGITS.sub("", value.strip().lstrip("+"))


def normalize_phone(raw: str | None, country_code: str | None = None) -> str:
    """
    Strip formatting and make sure the number carries ``country_code``.

    A number written with a leading ``+`` already carries its own country
    code and is kept as is.  Otherwise it is treated as prefixed when it starts
    with the code and is longer than a bare national number.
    """
    digits = digits_only(raw)
    code = digits_only(country_code)
    if not digits or not code:
        return digits
    if raw.strip().startswith("+"):
        return digits
    if digits.startswith(code) and len(digits) > NATIONAL_NUMBER_MAX_DIGITS:
        return digits
    return f"{code}{digits}"


def to_e164(digits: str) -> str:
    return f"+{digits}"


def mask_phone(digits: str) -> str:
    """Log-safe form: only the last four digits survive."""
    if len(digits) <= 4:
        return "*" * len(digits)
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"
