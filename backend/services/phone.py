"""
Phone number rendering for the two ways we deliver a number:
  - speech: digits spoken one at a time in 3-3-4 groups ("5 0 9, 3 3 5, 0 7 1 1")
  - text:   XXX-XXX-XXXX

Malformed numbers are never guessed at: the original string comes back
unchanged and the anomaly is logged and counted.
"""

import re

MALFORMED_COUNT = 0  # Metric: malformed numbers seen since startup.

_E164_US = re.compile(r"^\+1[2-9]\d{9}$")


def normalize_digits(phone: str) -> str:
    """Digits only, with a leading US country code dropped from 11-digit numbers."""
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    return digits


def _flag_malformed(phone: str, style: str) -> str:
    global MALFORMED_COUNT
    MALFORMED_COUNT += 1
    print(f"[Phone] WARNING: can't format {phone!r} for {style}; passing it through unchanged")
    return phone


def _groups(digits: str) -> tuple:
    return digits[:3], digits[3:6], digits[6:10]


def for_speech(phone: str) -> str:
    """Render a number for text-to-speech so each digit is read with pauses between groups."""
    digits = normalize_digits(phone)
    if digits == "911":
        return "nine one one"
    if len(digits) != 10:
        return _flag_malformed(phone, "speech")
    return ", ".join(" ".join(group) for group in _groups(digits))


def for_text(phone: str) -> str:
    """Render a number as XXX-XXX-XXXX for SMS and chat."""
    digits = normalize_digits(phone)
    if digits == "911":
        return "911"
    if len(digits) != 10:
        return _flag_malformed(phone, "text")
    return "-".join(_groups(digits))


def to_e164(phone: str) -> str:
    """Best-effort +1XXXXXXXXXX for Twilio. Already-prefixed input is left alone."""
    raw = (phone or "").strip()
    if raw.startswith("+"):
        return raw
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 10:
        digits = "1" + digits
    return "+" + digits


def is_valid_phone_number(phone: str) -> bool:
    """US E.164 only: +1 followed by a 10-digit number whose area code doesn't start with 0/1."""
    return bool(_E164_US.match(phone or ""))
