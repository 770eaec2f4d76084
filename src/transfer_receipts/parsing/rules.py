"""
Declarative per-bank rule table.

The table maps a bank key ("bcp", "interbank", ..., "generic") to a set of
regular expressions, one per logical field:

    {
      "<bank-key>": {
        "fecha": "...", "hora": "...", "importe": "...", "nro_operacion": "...",
        "destino_block": "...", "origen_block": "...",
        "beneficiario": "...", "cta_dest_ult4": "...", "cta_origen_ult4": "..."
      },
      "generic": { ... }
    }

The table is read once, compiled eagerly and is read-only afterwards.
"""

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

# Logical field keys
FIELD_DATE = "fecha"
FIELD_TIME = "hora"
FIELD_AMOUNT = "importe"
FIELD_OPERATION = "nro_operacion"
FIELD_BENEFICIARY = "beneficiario"
FIELD_DESTINATION_BLOCK = "destino_block"
FIELD_ORIGIN_BLOCK = "origen_block"
FIELD_DESTINATION_SUFFIX = "cta_dest_ult4"
FIELD_ORIGIN_SUFFIX = "cta_origen_ult4"

GENERIC_KEY = "generic"
DEFAULT_RULES_RESOURCE = "parser_rules.json"


class RuleTableError(Exception):
    """Raised when the rule table cannot be loaded or compiled."""

    pass


class RulePattern:
    """
    A compiled rule with a fixed matching contract.

    - Matching is case-insensitive and Unicode-aware; only the first match counts.
    - first_value(): if the pattern has capturing groups, the value is the
      LAST non-blank group, scanning from the highest group index down.
      Alternations can then fill different group slots per branch. Without
      groups (or with all groups blank) the whole match is used. Values are
      trimmed.
    - first_pair(): for account blocks. Group 1 is the 4-digit suffix and
      group 2 the adjoining holder name, taken from the same match so the
      two always belong together.
    - A blank pattern never matches.
    """

    def __init__(self, pattern: str | None):
        self.source = (pattern or "").strip()
        self._regex: Optional[re.Pattern[str]] = (
            re.compile(self.source, re.IGNORECASE | re.UNICODE) if self.source else None
        )

    def __bool__(self) -> bool:
        return self._regex is not None

    def __repr__(self) -> str:
        return f"RulePattern({self.source!r})"

    def first_value(self, text: str) -> str | None:
        if self._regex is None:
            return None
        match = self._regex.search(text)
        if not match:
            return None
        for index in range(self._regex.groups, 0, -1):
            group = match.group(index)
            if group and group.strip():
                return group.strip()
        whole = match.group(0).strip()
        return whole or None

    def first_pair(self, text: str) -> tuple[str | None, str | None]:
        if self._regex is None:
            return None, None
        match = self._regex.search(text)
        if not match:
            return None, None
        if self._regex.groups == 0:
            return None, None
        suffix = match.group(1)
        holder = match.group(2) if self._regex.groups >= 2 else None
        return (
            suffix.strip() if suffix else None,
            holder.strip() if holder and holder.strip() else None,
        )


_EMPTY = RulePattern(None)


@dataclass(frozen=True)
class BankRules:
    """Compiled rules for one bank key."""

    key: str
    patterns: Mapping[str, RulePattern]

    def get(self, field_name: str) -> RulePattern:
        """Pattern for a field; a never-matching pattern when absent."""
        return self.patterns.get(field_name, _EMPTY)

    def first_value(self, field_name: str, text: str) -> str | None:
        return self.get(field_name).first_value(text)

    def first_pair(self, field_name: str, text: str) -> tuple[str | None, str | None]:
        return self.get(field_name).first_pair(text)


class RuleTable:
    """Read-only collection of BankRules keyed by bank key."""

    def __init__(self, banks: Mapping[str, BankRules]):
        if GENERIC_KEY not in banks:
            raise RuleTableError(f"Rule table must define a '{GENERIC_KEY}' entry")
        self._banks = MappingProxyType(dict(banks))

    @property
    def bank_keys(self) -> list[str]:
        return list(self._banks)

    def for_bank(self, key: str | None) -> BankRules:
        """Rules for a bank key, falling back to the generic entry."""
        if key and key.lower() in self._banks:
            return self._banks[key.lower()]
        return self._banks[GENERIC_KEY]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RuleTable":
        if not isinstance(data, Mapping):
            raise RuleTableError("Rule table must be a JSON object")

        banks: dict[str, BankRules] = {}
        for key, fields in data.items():
            if not isinstance(fields, Mapping):
                raise RuleTableError(f"Rules for '{key}' must be an object")
            compiled: dict[str, RulePattern] = {}
            for field_name, pattern in fields.items():
                if pattern is not None and not isinstance(pattern, str):
                    raise RuleTableError(f"Pattern {key}.{field_name} must be a string")
                try:
                    compiled[field_name] = RulePattern(pattern)
                except re.error as e:
                    raise RuleTableError(f"Invalid pattern {key}.{field_name}: {e}") from e
            banks[key.lower()] = BankRules(key=key.lower(), patterns=MappingProxyType(compiled))

        return cls(banks)

    @classmethod
    def from_json(cls, text: str) -> "RuleTable":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RuleTableError(f"Rule table is not valid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Path | str) -> "RuleTable":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RuleTableError(f"Cannot read rule table {path}: {e}") from e
        return cls.from_json(text)


@lru_cache(maxsize=1)
def load_default_rule_table() -> RuleTable:
    """Load the rule table bundled with the package (once per process)."""
    text = (
        resources.files("transfer_receipts")
        .joinpath("data")
        .joinpath(DEFAULT_RULES_RESOURCE)
        .read_text(encoding="utf-8")
    )
    return RuleTable.from_json(text)


def load_rule_table(path: Path | str | None = None) -> RuleTable:
    """Load a rule table from path, or the bundled one when path is None."""
    if path is None:
        return load_default_rule_table()
    return RuleTable.from_file(path)
