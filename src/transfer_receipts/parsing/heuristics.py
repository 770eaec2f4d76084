"""
Masked-account heuristics.

When the rule table cannot tell which masked account number ("**** 7042")
is the destination and which the origin, every masked number in the text
is assigned to a role by proximity to the role's keyword anchor.
"""

import re
from dataclasses import dataclass
from typing import Optional

# Two or more masking characters followed by the visible 4-digit suffix
MASKED_NUMBER_RE = re.compile(r"[*•]{2,}\s*(\d{4})")

DESTINATION_KEYWORDS = (
    "cuenta de destino",
    "cuenta destino",
    "destino",
    "beneficiario",
    "abonado a",
    "enviado a",
)

ORIGIN_KEYWORDS = (
    "cuenta de origen",
    "cuenta origen",
    "origen",
    "cargado en",
    "cuenta de cargo",
    "desde",
)


@dataclass(frozen=True)
class MaskedNumber:
    """A masked account occurrence and where it starts in the text."""

    suffix: str
    position: int


@dataclass(frozen=True)
class RoleAssignment:
    destination: Optional[MaskedNumber] = None
    origin: Optional[MaskedNumber] = None


def find_masked_numbers(text: str) -> list[MaskedNumber]:
    """All masked-number occurrences in document order."""
    return [MaskedNumber(m.group(1), m.start()) for m in MASKED_NUMBER_RE.finditer(text)]


def keyword_position(text: str, keywords: tuple[str, ...]) -> int | None:
    """Earliest position of any keyword (case-insensitive), or None."""
    lowered = text.lower()
    positions = [pos for pos in (lowered.find(k) for k in keywords) if pos >= 0]
    return min(positions) if positions else None


def _nearest(
    occurrences: list[MaskedNumber], anchor: int, claimed: set[int]
) -> Optional[int]:
    best: Optional[int] = None
    best_distance = 0
    for index, occurrence in enumerate(occurrences):
        if index in claimed:
            continue
        distance = abs(occurrence.position - anchor)
        # Strict '<' keeps the earliest occurrence on equal distance
        if best is None or distance < best_distance:
            best, best_distance = index, distance
    return best


def _first_unclaimed(occurrences: list[MaskedNumber], claimed: set[int]) -> Optional[int]:
    for index in range(len(occurrences)):
        if index not in claimed:
            return index
    return None


def assign_account_roles(
    text: str,
    destination_keywords: tuple[str, ...] = DESTINATION_KEYWORDS,
    origin_keywords: tuple[str, ...] = ORIGIN_KEYWORDS,
) -> RoleAssignment:
    """
    Nearest-anchor assignment of masked numbers to destination and origin.

    Destination claims first. A role with a keyword takes the unclaimed
    occurrence closest to that keyword; a role without one takes the first
    unclaimed occurrence in document order. A single occurrence therefore
    always ends up as the destination.
    """
    occurrences = find_masked_numbers(text)
    if not occurrences:
        return RoleAssignment()

    claimed: set[int] = set()

    destination_anchor = keyword_position(text, destination_keywords)
    if destination_anchor is not None:
        destination_index = _nearest(occurrences, destination_anchor, claimed)
    else:
        destination_index = _first_unclaimed(occurrences, claimed)
    if destination_index is not None:
        claimed.add(destination_index)

    origin_anchor = keyword_position(text, origin_keywords)
    if origin_anchor is not None:
        origin_index = _nearest(occurrences, origin_anchor, claimed)
    else:
        origin_index = _first_unclaimed(occurrences, claimed)

    return RoleAssignment(
        destination=occurrences[destination_index] if destination_index is not None else None,
        origin=occurrences[origin_index] if origin_index is not None else None,
    )
