"""Phone number helpers shared by driver records and inbound SMS correlation."""

import re

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")


def normalize_phone_number(raw: str) -> str:
    """
    Normalize a phone number to E.164 (``+15551234567``).

    Non-digit characters are stripped; a bare 10-digit number is assumed to be
    North American and gets the ``1`` country code. Returns an empty string
    when nothing usable is left.
    """
    if not raw:
        return ""

    digits = re.sub(r"\D", "", str(raw))
    if not digits:
        return ""

    if len(digits) == 10:
        digits = "1" + digits

    return "+" + digits


def is_valid_e164(phone_number: str) -> bool:
    """True when the value is already a well-formed E.164 number."""
    return bool(E164_PATTERN.match(phone_number or ""))
