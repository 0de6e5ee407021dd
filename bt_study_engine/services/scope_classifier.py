"""Scope classification for free-text scripture references.

Maps a reference string such as ``"John 3:16"``, ``"Romans"``, ``"NT"`` or
``"Bible"`` to a :class:`ScopeType` and the bounded scope tokens that the
providers accept. Whole-corpus scopes are never sent upstream as one call;
they expand to one token per testament.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from bt_study_engine.core.books import (
    BOOK_GROUPINGS,
    NEW_TESTAMENT,
    OLD_TESTAMENT,
    normalize_book_name,
)
from bt_study_engine.core.models import ScopeClassification, ScopeToken, ScopeType

TESTAMENT_ALIASES: dict[str, str] = {
    "ot": OLD_TESTAMENT,
    "old testament": OLD_TESTAMENT,
    "nt": NEW_TESTAMENT,
    "new testament": NEW_TESTAMENT,
}
CORPUS_ALIASES: frozenset[str] = frozenset({"bible", "all", ""})
CORPUS_TESTAMENTS: tuple[str, ...] = (OLD_TESTAMENT, NEW_TESTAMENT)

_CHAPTER_VERSE_RE = re.compile(r"\d+:\d+")
_TRAILING_NUMBER_RE = re.compile(r"\s+\d+$")
_REFERENCE_RE = re.compile(r"^(?P<book>.+?)\s+(?P<chapter>\d+)(?::(?P<verse>\d+)(?:\s*-\s*(?P<end>\d+))?)?\s*$")


@dataclass(frozen=True, slots=True)
class ParsedReference:
    """Book/chapter/verse components of a reference string."""

    book: str
    chapter: Optional[int] = None
    verse: Optional[int] = None
    end_verse: Optional[int] = None


def _normalize(reference: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (reference or "").strip().lower())


def detect_scope_type(reference: Optional[str]) -> ScopeType:
    """Classify ``reference``; aliases are checked before the book fallback."""
    normalized = _normalize(reference)
    if normalized in TESTAMENT_ALIASES or normalized in BOOK_GROUPINGS:
        return ScopeType.TESTAMENT
    if normalized in CORPUS_ALIASES:
        return ScopeType.CORPUS
    raw = (reference or "").strip()
    if _CHAPTER_VERSE_RE.search(raw):
        return ScopeType.VERSE
    if _TRAILING_NUMBER_RE.search(raw):
        return ScopeType.CHAPTER
    return ScopeType.BOOK


def normalize_scope_value(reference: Optional[str]) -> str:
    """Return the value providers expect for a single-token scope."""
    normalized = _normalize(reference)
    if normalized in TESTAMENT_ALIASES:
        return TESTAMENT_ALIASES[normalized]
    if normalized in BOOK_GROUPINGS:
        return normalized
    return (reference or "").strip()


def expand_scope(reference: Optional[str], scope_type: ScopeType) -> list[ScopeToken]:
    """Expand a classified scope into the tokens dispatched to providers."""
    if scope_type is ScopeType.CORPUS:
        return [ScopeToken(kind=ScopeType.TESTAMENT, value=value) for value in CORPUS_TESTAMENTS]
    return [ScopeToken(kind=scope_type, value=normalize_scope_value(reference))]


def classify_scope(reference: Optional[str]) -> ScopeClassification:
    """Classify ``reference`` and expand it into scope tokens."""
    scope_type = detect_scope_type(reference)
    return ScopeClassification(
        raw=(reference or "").strip(),
        scope_type=scope_type,
        tokens=expand_scope(reference, scope_type),
    )


def parse_reference(reference: Optional[str]) -> ParsedReference | None:
    """Parse ``"1 Corinthians 13:4-7"`` style references into components.

    A string without a trailing chapter is treated as a book-level reference.
    Returns ``None`` for empty input or strings without any letters.
    """
    raw = re.sub(r"\s+", " ", (reference or "").strip())
    if not raw or not re.search(r"[^\W\d_]", raw):
        return None
    match = _REFERENCE_RE.match(raw)
    if match is None:
        return ParsedReference(book=raw)
    verse = match.group("verse")
    end = match.group("end")
    return ParsedReference(
        book=match.group("book").strip(),
        chapter=int(match.group("chapter")),
        verse=int(verse) if verse else None,
        end_verse=int(end) if end else None,
    )


def _same_book(first: str, second: str) -> bool:
    """Compare book names; unrecognized abbreviations never count as a mismatch."""
    first_canonical = normalize_book_name(first)
    second_canonical = normalize_book_name(second)
    if first_canonical is None or second_canonical is None:
        return True
    return first_canonical == second_canonical


def reference_in_scope(reference: Optional[str], scope_reference: str) -> bool:
    """Return True when ``reference`` falls within ``scope_reference``.

    Book scopes contain every chapter, chapter scopes every verse of that
    chapter, and verse scopes any overlapping verse range.
    """
    if not reference:
        return False
    ref = parse_reference(reference)
    scope = parse_reference(scope_reference)
    if ref is None or scope is None:
        return False
    if not _same_book(ref.book, scope.book):
        return False
    if scope.chapter is None:
        return True
    if ref.chapter != scope.chapter:
        return False
    if scope.verse is None:
        return True
    if ref.verse is None:
        return False
    scope_end = scope.end_verse or scope.verse
    ref_end = ref.end_verse or ref.verse
    return ref.verse <= scope_end and ref_end >= scope.verse


def scope_label(reference: str) -> str:
    """Format a reference for display, normalizing whitespace and ranges."""
    parsed = parse_reference(reference)
    if parsed is None:
        return reference
    label = parsed.book
    if parsed.chapter is not None:
        label += f" {parsed.chapter}"
        if parsed.verse is not None:
            label += f":{parsed.verse}"
            if parsed.end_verse is not None:
                label += f"-{parsed.end_verse}"
    return label


__all__ = [
    "TESTAMENT_ALIASES",
    "CORPUS_ALIASES",
    "CORPUS_TESTAMENTS",
    "ParsedReference",
    "detect_scope_type",
    "normalize_scope_value",
    "expand_scope",
    "classify_scope",
    "parse_reference",
    "reference_in_scope",
    "scope_label",
]
