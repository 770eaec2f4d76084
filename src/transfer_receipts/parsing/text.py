"""
Text helpers shared by the extractors.
"""

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(raw: str) -> str:
    """
    Collapse an OCR transcript into a single search line.

    Non-breaking spaces and line breaks become ordinary spaces, runs of
    whitespace collapse to one space and the result is trimmed.
    """
    if not raw:
        return ""
    text = raw.replace("\u00a0", " ").replace("\r", " ").replace("\n", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def unaccent(value: str) -> str:
    """Strip combining diacritics ("Sábado" -> "Sabado")."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def clean_name(name: str | None) -> str | None:
    """Collapse whitespace and capitalise each word of a holder name."""
    if not name or not name.strip():
        return None
    words = _WHITESPACE_RE.sub(" ", name.strip()).split(" ")
    return " ".join(word.capitalize() for word in words)


# Letters (accented included), spaces, periods, apostrophes, hyphens, ampersands
NAME_CHARS = r"A-Za-zÁÉÍÓÚÜÑáéíóúüñ\s.'\-&"

# Holder name of at least three characters, ending before a currency marker,
# a non-name character or the end of the text.
HOLDER_NAME_PATTERN = (
    rf"([A-Za-zÁÉÍÓÚÜÑáéíóúüñ][{NAME_CHARS}]{{2,}}?)"
    rf"(?=\s*(?:S/|US\$|[^{NAME_CHARS}]|$))"
)

# Receipt labels that end a holder name swallowed from a single-line transcript
HOLDER_STOP_WORDS = {
    "banco",
    "codigo",
    "comision",
    "cuenta",
    "destino",
    "enviado",
    "fecha",
    "hora",
    "importe",
    "moneda",
    "monto",
    "numero",
    "operacion",
    "origen",
    "tipo",
    "total",
}


def trim_holder_name(raw: str | None) -> str | None:
    """Cut a captured holder name at the first receipt label."""
    if not raw:
        return None
    kept: list[str] = []
    for word in raw.split():
        if word != "&" and not any(ch.isalpha() for ch in word):
            break
        if unaccent(word).lower().strip(":.") in HOLDER_STOP_WORDS:
            break
        kept.append(word)
    name = " ".join(kept).strip(" -&")
    return name if len(name) >= 3 else None
