"""
Field normalizers.

Canonical formats:
- Date: YYYY-MM-DD
- Time: HH:MM (24-hour, zero padded)
- Amount: "<CUR> <digits>.<2 digits>", e.g. "PEN 921.88"

Every normalizer returns None when the raw value cannot be understood.
They are idempotent: feeding a normalized value back returns it unchanged.
"""

import re
from datetime import date

from .text import unaccent

# Spanish month names, accent-stripped and upper-cased.
# SETIEMBRE is the spelling still printed on Peruvian receipts.
SPANISH_MONTHS = {
    "ENERO": 1,
    "FEBRERO": 2,
    "MARZO": 3,
    "ABRIL": 4,
    "MAYO": 5,
    "JUNIO": 6,
    "JULIO": 7,
    "AGOSTO": 8,
    "SEPTIEMBRE": 9,
    "SETIEMBRE": 9,
    "OCTUBRE": 10,
    "NOVIEMBRE": 11,
    "DICIEMBRE": 12,
}

MONTH_ABBREVIATIONS = {
    "ENE": 1,
    "FEB": 2,
    "MAR": 3,
    "ABR": 4,
    "MAY": 5,
    "JUN": 6,
    "JUL": 7,
    "AGO": 8,
    "SEP": 9,
    "SET": 9,
    "OCT": 10,
    "NOV": 11,
    "DIC": 12,
}

# Printed currency markers and their ISO codes. Longest marker first.
CURRENCY_MARKERS = [
    (re.compile(r"US\s?\$", re.IGNORECASE), "USD"),
    (re.compile(r"S\s?/\.?", re.IGNORECASE), "PEN"),
]

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_LONG_DATE_RE = re.compile(
    r"^(\d{1,2})\s+(?:de\s+)?([A-Za-z]+)\.?\s+(?:de(?:l)?\s+)?(\d{4})$", re.IGNORECASE
)
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2})?(am|pm)?")
# A '.', ' ' or ',' between a digit and exactly three digits that close the number.
_THOUSANDS_RE = re.compile(r"(?<=\d)[.,\s](?=\d{3}(?:\D|$))")
_AMOUNT_RE = re.compile(r"([A-Z]{3})\s*(\d+)(?:\.(\d{1,2}))?", re.IGNORECASE)


def month_number(name: str) -> int | None:
    """Map a Spanish month name or abbreviation to 1-12 (accent/case-insensitive)."""
    key = unaccent(name).strip().rstrip(".").upper()
    return SPANISH_MONTHS.get(key) or MONTH_ABBREVIATIONS.get(key)


def build_iso_date(year: int, month: int, day: int) -> str | None:
    """Return YYYY-MM-DD, or None for an impossible calendar date."""
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(raw: str | None) -> str | None:
    """
    Normalize a date to YYYY-MM-DD.

    Accepts:
    - 2023-06-17 (pass-through)
    - 17/06/2023
    - 17 Junio 2023, 17 de junio de 2023, 17 jun 2023
    """
    if not raw or not raw.strip():
        return None
    s = raw.strip()

    m = _ISO_DATE_RE.match(s)
    if m:
        return build_iso_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _SLASH_DATE_RE.match(s)
    if m:
        return build_iso_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    m = _LONG_DATE_RE.match(unaccent(s))
    if m:
        month = month_number(m.group(2))
        if month:
            return build_iso_date(int(m.group(3)), month, int(m.group(1)))

    return None


def to_24_hour(hour: int, meridiem: str | None) -> int:
    """Convert a 12-hour clock hour; without meridiem the hour is kept."""
    if meridiem == "pm" and hour != 12:
        return hour + 12
    if meridiem == "am" and hour == 12:
        return 0
    return hour


def normalize_time(raw: str | None) -> str | None:
    """
    Normalize a time to HH:MM (24-hour).

    "7:22 p.m." and "7:22:15 p.m." -> "19:22", "12 am" hours become 00,
    a bare "9:05" is taken as 24-hour and only zero padded.
    """
    if not raw or not raw.strip():
        return None
    s = raw.strip().lower().replace(" ", "").replace(".", "")
    m = _TIME_RE.search(s)
    if not m:
        return None

    hour = to_24_hour(int(m.group(1)), m.group(3))
    minute = int(m.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def fix_decimals(number: str) -> str:
    """Pad or truncate the fractional part to exactly two digits."""
    if not number:
        return "0.00"
    integer, _, fraction = number.partition(".")
    return f"{integer}.{(fraction + '00')[:2]}"


def normalize_amount(raw: str | None) -> str | None:
    """
    Normalize an amount to "<CUR> <NNN.NN>".

    Examples:
        >>> normalize_amount("S/ 921,88")
        'PEN 921.88'
        >>> normalize_amount("PEN 1,234.5")
        'PEN 1234.50'
    """
    if not raw or not raw.strip():
        return None
    s = raw.strip().replace("\u00a0", " ")

    for pattern, code in CURRENCY_MARKERS:
        s, replaced = pattern.subn(f"{code} ", s, count=1)
        if replaced:
            break

    s = _THOUSANDS_RE.sub("", s)
    s = s.replace(",", ".")

    m = _AMOUNT_RE.search(s)
    if not m:
        return None

    currency = m.group(1).upper()
    number = m.group(2) if m.group(3) is None else f"{m.group(2)}.{m.group(3)}"
    return f"{currency} {fix_decimals(number)}"
