"""
Repair of raw extracted document text (PDF / plain text readers).

normalize() is the only entry point used by the extraction layer. It is a
pure function and idempotent: normalize(normalize(x)) == normalize(x).
"""
from typing import List


# -------------------- ARTIFACTS --------------------

# Placeholder box, replacement char, soft hyphen, zero-width space/non-joiner/joiner
DELETED_GLYPHS = ["\u25a1", "\ufffd", "\u00ad", "\u200b", "\u200c", "\u200d"]
NBSP = "\u00a0"

LIGATURES = {
    "\ufb03": "ffi",
    "\ufb04": "ffl",
    "\ufb00": "ff",
    "\ufb01": "fi",
    "\ufb02": "fl",
}

OPENING_BRACKETS = "([{"
CLOSING_BRACKETS = ")]}"


def strip_artifacts(text: str) -> str:
    for ch in DELETED_GLYPHS:
        text = text.replace(ch, "")
    return text.replace(NBSP, " ")


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def replace_ligatures(text: str) -> str:
    for glyph, letters in LIGATURES.items():
        text = text.replace(glyph, letters)
    return text


# -------------------- WORD BOUNDARY REPAIR --------------------

def _is_boundary(prev: str, current: str, nxt: str, split_before: bool = False) -> bool:
    """True when a space was lost between `current` and `nxt`.

    `prev` is the source character before `current` ("" at the start);
    `split_before` says a space was already inserted between the two.
    """
    if current.islower() and nxt.isupper():
        return True
    # A capital that just opened a new word keeps its lowercase tail; "ABc" is an acronym run
    if current.isupper() and nxt.islower() and prev.islower() and not split_before:
        return True
    if current.isalpha() and nxt.isdigit():
        return True
    if current.isdigit() and nxt.isalpha():
        return True
    if current in CLOSING_BRACKETS and nxt.isalpha():
        return True
    if current.isalpha() and nxt in OPENING_BRACKETS:
        return True
    if current == "." and nxt.isupper():
        return True
    if current in ",:;" and nxt.isalpha():
        return True
    return False


def repair_word_boundaries(text: str) -> str:
    # Forward-only scan over the source characters; inserted spaces are never rescanned
    out: List[str] = []
    split_before = False
    i = 0
    last = len(text) - 1
    while i <= last:
        current = text[i]
        out.append(current)
        if i < last:
            nxt = text[i + 1]
            split = False
            if current != " " and nxt != " ":
                prev = text[i - 1] if i > 0 else ""
                split = _is_boundary(prev, current, nxt, split_before)
                if split:
                    out.append(" ")
            split_before = split
        i += 1
    return "".join(out)


def normalize(raw: str) -> str:
    """Clean raw extracted text into single-spaced readable prose.

    Passes run in a fixed order: artifact removal, whitespace collapse,
    word-boundary repair, ligature substitution, final collapse and trim.
    Never fails; empty or whitespace-only input yields "".
    """
    if not raw:
        return ""
    text = strip_artifacts(raw)
    text = collapse_whitespace(text)
    text = repair_word_boundaries(text)
    text = replace_ligatures(text)
    return collapse_whitespace(text).strip()
