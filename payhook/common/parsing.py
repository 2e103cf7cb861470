"""Lenient coercion helpers for loosely-typed webhook fields."""

import math
import re


_AMOUNT_NOISE = re.compile(r"[^\d.,]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_NON_DIGITS = re.compile(r"\D")


def normalize_phone(phone: str | None, digits_only: bool = False) -> str | None:
    """Strip a leading `+`; with `digits_only` drop every other non-digit too."""

    if not phone:
        return None
    normalized = phone[1:] if phone.startswith("+") else phone
    if digits_only:
        normalized = _NON_DIGITS.sub("", normalized)
    return normalized


def parse_amount(value) -> float | None:
    """Coerce a numeric or textual amount into a non-negative float.

    Strings keep only digits, `.` and `,`; commas become decimal points and the
    longest leading number is read, so `"R$ 50.00"` gives 50.0 and `"123,45"`
    gives 123.45. Returns None when nothing usable is found.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
        if not math.isfinite(amount) or amount < 0:
            return None
        return amount
    if not isinstance(value, str):
        return None

    cleaned = _AMOUNT_NOISE.sub("", value).replace(",", ".")
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return None
    amount = float(match.group(0))
    # Overlong digit strings overflow to inf.
    if not math.isfinite(amount):
        return None
    return amount
