from __future__ import annotations
import re
import unicodedata

WHATSAPP_RE = re.compile(r"^\(\d{2}\) \d{5}-\d{4}$")
DEFAULT_SLUG = "desafio"

_NON_DIGIT = re.compile(r"\D")
_NON_LETTER = re.compile(r"[^a-zA-Z]")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def format_whatsapp(raw: str) -> str:
    """
    Progressively format a Brazilian mobile number as ``(DD) DDDDD-DDDD``.

    Only digits are kept (at most 11), so formatting an already formatted
    number returns it unchanged:
        >>> format_whatsapp("1191234")
        '(11) 91234'
        >>> format_whatsapp("11912345678")
        '(11) 91234-5678'
    """
    digits = _NON_DIGIT.sub("", raw or "")[:11]
    if not digits:
        return ""
    if len(digits) < 2:
        return f"({digits}"
    if len(digits) == 2:
        return f"({digits}) "
    if len(digits) <= 7:
        return f"({digits[:2]}) {digits[2:]}"
    return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"


def is_valid_whatsapp(value: str) -> bool:
    return bool(WHATSAPP_RE.match(value or ""))


def normalize_state(raw: str) -> str:
    return _NON_LETTER.sub("", raw or "").upper()[:2]


def slugify(text: str, default: str = DEFAULT_SLUG) -> str:
    # fold accents first so "Março" becomes "marco" instead of "mar-o"
    folded = unicodedata.normalize("NFKD", text or "")
    ascii_text = "".join(c for c in folded if not unicodedata.combining(c))
    slug = _NON_SLUG.sub("-", ascii_text.lower()).strip("-")
    return slug or default
