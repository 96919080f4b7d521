from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

"""Preeti to Unicode Devanagari conversion.

Preeti is a font-level encoding: Nepali text is typed as ASCII keystrokes and
the font draws Devanagari glyphs for them. Converting back to Unicode takes
three substitution passes followed by one reordering pass:

1. ligatures (multi-character glyph sequences), longest pattern first
2. digraphs (vowels and compound consonants), longest pattern first
3. single characters, one output character per input character
4. the i-matra, typed before its consonant, is moved after it

Text that already contains Devanagari is returned unchanged, which makes the
conversion idempotent.
"""

__all__ = [
    "LIGATURES",
    "DIGRAPHS",
    "SINGLE_CHARACTERS",
    "is_preeti_encoded",
    "preeti_to_unicode",
    "convert_record_fields",
]

T = TypeVar("T")

I_MATRA = "\u093f"

_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_PREETI_HINTS = re.compile(r"[;sf]|km|cf|em|if|f\]|f\}|\[|\]|\{|\}")
# characters a regex "." would not match; the i-matra is never swapped across them
_LINE_BREAKS = frozenset("\n\r\u2028\u2029")

LIGATURES: dict[str, str] = {
    "\\": "ू",
    "Ø": "क्र",
    "|m": "फ",
    "|": "र्",
    "^": "६",
    "ß": "द्व",
    "Î": "द्य",
    "å": "द्ध",
    "›": "दृ",
    "ê": "क्त",
    "‹": "ट्ट",
    "Ý": "ट्ठ",
    "ç": "न्न",
    "í": "न्ह",
    "ì": "ह्न",
    "Í": "ड्ड",
    "Ë": "ड्ढ",
    "§": "ञ्ज",
    "‰": "ट्र",
    "Ú": "ठ्ठ",
    "é": "ड्र",
    "ë": "ढ्य",
    "Ò": "द्घ",
    "ƒ": "ह्य",
    "‡": "द्द",
    "N": "ल",
    "•": ".",
    "\u2018": "\u2018",
    "\u201C": "\u201C",
    "\u201D": "\u201D",
}

DIGRAPHS: dict[str, str] = {
    "cf": "आ",
    "O{": "ई",
    "pm": "ऊ",
    "P]": "ऐ",
    "cf]": "ओ",
    "cf}": "औ",
    "em": "झ",
    "km": "फ",
    "if": "ष",
    "If": "क्ष",
    "f]": "ो",
    "f}": "ौ",
}

SINGLE_CHARACTERS: dict[str, str] = {
    # vowels
    "c": "अ", "O": "इ", "p": "उ", "P": "ए", "C": "ऋ",
    # consonants
    "s": "क", "v": "ख", "u": "ग", "3": "घ", "ª": "ङ",
    "r": "च", "5": "छ", "h": "ज", "`": "ञ",
    "6": "ट", "7": "ठ", "8": "ड", "9": "ढ", "0": "ण",
    "t": "त", "y": "थ", "b": "द", "w": "ध", "g": "न",
    "k": "प", "a": "ब", "e": "भ", "d": "म",
    "o": "य", "/": "र", "n": "ल", "j": "व",
    "z": "श", ";": "स", "x": "ह",
    "q": "त्र", "1": "ज्ञ",
    # vowel signs
    "f": "ा", "l": I_MATRA, "L": "ी", "F": "ी",
    "]": "े", "}": "ै", "[": "ु", "{": "ू",
    "'": "ृ",
    # digits
    ")": "०", "!": "१", "@": "२", "#": "३", "$": "४",
    "%": "५", "&": "७", "*": "८", "(": "९",
    # punctuation
    ".": "।", ":": "ः",
}


def _longest_first(table: Mapping[str, str]) -> list[tuple[str, str]]:
    # sorted() is stable: equal lengths keep table order
    return sorted(table.items(), key=lambda item: len(item[0]), reverse=True)


_LIGATURES_ORDERED = _longest_first(LIGATURES)
_DIGRAPHS_ORDERED = _longest_first(DIGRAPHS)


def _has_devanagari(text: str) -> bool:
    return _DEVANAGARI.search(text) is not None


def is_preeti_encoded(text: str) -> bool:
    """Heuristic check for Preeti text.

    False for empty text and for text that already contains Devanagari.
    Otherwise true when a character pattern typical of Preeti appears.
    """
    if not text or _has_devanagari(text):
        return False
    return _PREETI_HINTS.search(text) is not None


def _replace_all(text: str, table: list[tuple[str, str]]) -> str:
    for pattern, replacement in table:
        text = text.replace(pattern, replacement)
    return text


def _move_i_matra(text: str) -> str:
    """Move each i-matra after the character that follows it.

    A plain scan with one character of lookahead; a swapped pair is consumed
    as a unit so the moved character is not looked at again.
    """
    out: list[str] = []
    i = 0
    length = len(text)
    while i < length:
        ch = text[i]
        if ch == I_MATRA and i + 1 < length and text[i + 1] not in _LINE_BREAKS:
            out.append(text[i + 1])
            out.append(ch)
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def preeti_to_unicode(text: str) -> str:
    """Convert Preeti typed text to Unicode Devanagari.

    Examples:
        >>> preeti_to_unicode("cf")
        'आ'
        >>> preeti_to_unicode("ljefu")
        'विभाग'
    """
    if not text:
        return ""
    if _has_devanagari(text):
        return text

    result = _replace_all(text, _LIGATURES_ORDERED)
    result = _replace_all(result, _DIGRAPHS_ORDERED)
    result = "".join(SINGLE_CHARACTERS.get(ch, ch) for ch in result)
    return _move_i_matra(result)


def convert_record_fields(record: T, fields: Iterable[str]) -> T:
    """Return a copy of ``record`` with Preeti string fields converted.

    Works for mappings (a new dict is returned) and for dataclass instances
    (dataclasses.replace). Fields that are missing, not strings, or not
    detected as Preeti are left as they are. The input is never mutated.
    """
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        changes: dict[str, Any] = {}
        for name in fields:
            value = getattr(record, name, None)
            if isinstance(value, str) and is_preeti_encoded(value):
                changes[name] = preeti_to_unicode(value)
        return dataclasses.replace(record, **changes)

    converted = dict(record)  # type: ignore[call-overload]
    for name in fields:
        value = converted.get(name)
        if isinstance(value, str) and is_preeti_encoded(value):
            converted[name] = preeti_to_unicode(value)
    return converted  # type: ignore[return-value]
