"""Canonical book table, testament lookup, and reference detection in prose."""

from __future__ import annotations

import re
from typing import Dict

OLD_TESTAMENT = "OT"
NEW_TESTAMENT = "NT"

# Canonical book name → testament and the short abbreviation used in references.
BOOK_MAP: Dict[str, Dict[str, str]] = {
    # Pentateuch
    "Genesis": {"testament": OLD_TESTAMENT, "ref_abbr": "Gen"},
    "Exodus": {"testament": OLD_TESTAMENT, "ref_abbr": "Exo"},
    "Leviticus": {"testament": OLD_TESTAMENT, "ref_abbr": "Lev"},
    "Numbers": {"testament": OLD_TESTAMENT, "ref_abbr": "Num"},
    "Deuteronomy": {"testament": OLD_TESTAMENT, "ref_abbr": "Deu"},
    # History
    "Joshua": {"testament": OLD_TESTAMENT, "ref_abbr": "Jos"},
    "Judges": {"testament": OLD_TESTAMENT, "ref_abbr": "Jdg"},
    "Ruth": {"testament": OLD_TESTAMENT, "ref_abbr": "Rut"},
    "1 Samuel": {"testament": OLD_TESTAMENT, "ref_abbr": "1Sa"},
    "2 Samuel": {"testament": OLD_TESTAMENT, "ref_abbr": "2Sa"},
    "1 Kings": {"testament": OLD_TESTAMENT, "ref_abbr": "1Ki"},
    "2 Kings": {"testament": OLD_TESTAMENT, "ref_abbr": "2Ki"},
    "1 Chronicles": {"testament": OLD_TESTAMENT, "ref_abbr": "1Ch"},
    "2 Chronicles": {"testament": OLD_TESTAMENT, "ref_abbr": "2Ch"},
    "Ezra": {"testament": OLD_TESTAMENT, "ref_abbr": "Ezr"},
    "Nehemiah": {"testament": OLD_TESTAMENT, "ref_abbr": "Neh"},
    "Esther": {"testament": OLD_TESTAMENT, "ref_abbr": "Est"},
    # Poetry/Wisdom
    "Job": {"testament": OLD_TESTAMENT, "ref_abbr": "Job"},
    "Psalm": {"testament": OLD_TESTAMENT, "ref_abbr": "Psa"},
    "Proverbs": {"testament": OLD_TESTAMENT, "ref_abbr": "Pro"},
    "Ecclesiastes": {"testament": OLD_TESTAMENT, "ref_abbr": "Ecc"},
    "Song of Solomon": {"testament": OLD_TESTAMENT, "ref_abbr": "Sos"},
    # Major Prophets
    "Isaiah": {"testament": OLD_TESTAMENT, "ref_abbr": "Isa"},
    "Jeremiah": {"testament": OLD_TESTAMENT, "ref_abbr": "Jer"},
    "Lamentations": {"testament": OLD_TESTAMENT, "ref_abbr": "Lam"},
    "Ezekiel": {"testament": OLD_TESTAMENT, "ref_abbr": "Eze"},
    "Daniel": {"testament": OLD_TESTAMENT, "ref_abbr": "Dan"},
    # Minor Prophets
    "Hosea": {"testament": OLD_TESTAMENT, "ref_abbr": "Hos"},
    "Joel": {"testament": OLD_TESTAMENT, "ref_abbr": "Joe"},
    "Amos": {"testament": OLD_TESTAMENT, "ref_abbr": "Amo"},
    "Obadiah": {"testament": OLD_TESTAMENT, "ref_abbr": "Oba"},
    "Jonah": {"testament": OLD_TESTAMENT, "ref_abbr": "Jon"},
    "Micah": {"testament": OLD_TESTAMENT, "ref_abbr": "Mic"},
    "Nahum": {"testament": OLD_TESTAMENT, "ref_abbr": "Nah"},
    "Habakkuk": {"testament": OLD_TESTAMENT, "ref_abbr": "Hab"},
    "Zephaniah": {"testament": OLD_TESTAMENT, "ref_abbr": "Zep"},
    "Haggai": {"testament": OLD_TESTAMENT, "ref_abbr": "Hag"},
    "Zechariah": {"testament": OLD_TESTAMENT, "ref_abbr": "Zec"},
    "Malachi": {"testament": OLD_TESTAMENT, "ref_abbr": "Mal"},
    # Gospels/Acts
    "Matthew": {"testament": NEW_TESTAMENT, "ref_abbr": "Mat"},
    "Mark": {"testament": NEW_TESTAMENT, "ref_abbr": "Mar"},
    "Luke": {"testament": NEW_TESTAMENT, "ref_abbr": "Luk"},
    "John": {"testament": NEW_TESTAMENT, "ref_abbr": "Joh"},
    "Acts": {"testament": NEW_TESTAMENT, "ref_abbr": "Act"},
    # Paul’s Epistles
    "Romans": {"testament": NEW_TESTAMENT, "ref_abbr": "Rom"},
    "1 Corinthians": {"testament": NEW_TESTAMENT, "ref_abbr": "1Co"},
    "2 Corinthians": {"testament": NEW_TESTAMENT, "ref_abbr": "2Co"},
    "Galatians": {"testament": NEW_TESTAMENT, "ref_abbr": "Gal"},
    "Ephesians": {"testament": NEW_TESTAMENT, "ref_abbr": "Eph"},
    "Philippians": {"testament": NEW_TESTAMENT, "ref_abbr": "Php"},
    "Colossians": {"testament": NEW_TESTAMENT, "ref_abbr": "Col"},
    "1 Thessalonians": {"testament": NEW_TESTAMENT, "ref_abbr": "1Th"},
    "2 Thessalonians": {"testament": NEW_TESTAMENT, "ref_abbr": "2Th"},
    "1 Timothy": {"testament": NEW_TESTAMENT, "ref_abbr": "1Ti"},
    "2 Timothy": {"testament": NEW_TESTAMENT, "ref_abbr": "2Ti"},
    "Titus": {"testament": NEW_TESTAMENT, "ref_abbr": "Tit"},
    "Philemon": {"testament": NEW_TESTAMENT, "ref_abbr": "Phm"},
    # General Epistles + Revelation
    "Hebrews": {"testament": NEW_TESTAMENT, "ref_abbr": "Heb"},
    "James": {"testament": NEW_TESTAMENT, "ref_abbr": "Jas"},
    "1 Peter": {"testament": NEW_TESTAMENT, "ref_abbr": "1Pe"},
    "2 Peter": {"testament": NEW_TESTAMENT, "ref_abbr": "2Pe"},
    "1 John": {"testament": NEW_TESTAMENT, "ref_abbr": "1Jo"},
    "2 John": {"testament": NEW_TESTAMENT, "ref_abbr": "2Jo"},
    "3 John": {"testament": NEW_TESTAMENT, "ref_abbr": "3Jo"},
    "Jude": {"testament": NEW_TESTAMENT, "ref_abbr": "Jud"},
    "Revelation": {"testament": NEW_TESTAMENT, "ref_abbr": "Rev"},
}

# Common alias/abbreviation normalization to canonical names used in BOOK_MAP
BOOK_ALIASES: Dict[str, str] = {
    # Gospels
    "jn": "John", "jhn": "John", "john": "John",
    "mt": "Matthew", "matt": "Matthew", "matthew": "Matthew",
    "mk": "Mark", "mrk": "Mark", "mark": "Mark",
    "lk": "Luke", "luk": "Luke", "luke": "Luke",
    # Psalms/Song
    "ps": "Psalm", "psa": "Psalm", "psalm": "Psalm", "psalms": "Psalm",
    "sos": "Song of Solomon", "song": "Song of Solomon", "song of songs": "Song of Solomon",
    # 1/2/3 books
    "1jn": "1 John", "1john": "1 John", "i john": "1 John",
    "2jn": "2 John", "2john": "2 John", "ii john": "2 John",
    "3jn": "3 John", "3john": "3 John", "iii john": "3 John",
    "1pet": "1 Peter", "1pe": "1 Peter", "1peter": "1 Peter", "i peter": "1 Peter",
    "2pet": "2 Peter", "2pe": "2 Peter", "2peter": "2 Peter", "ii peter": "2 Peter",
    "1sam": "1 Samuel", "1sa": "1 Samuel", "1samuel": "1 Samuel",
    "2sam": "2 Samuel", "2sa": "2 Samuel", "2samuel": "2 Samuel",
    "1ki": "1 Kings", "1kings": "1 Kings", "i kings": "1 Kings",
    "2ki": "2 Kings", "2kings": "2 Kings", "ii kings": "2 Kings",
    "1ch": "1 Chronicles", "1 chron": "1 Chronicles", "1chronicles": "1 Chronicles",
    "2ch": "2 Chronicles", "2 chron": "2 Chronicles", "2chronicles": "2 Chronicles",
    "1co": "1 Corinthians", "1cor": "1 Corinthians", "1 cor": "1 Corinthians",
    "2co": "2 Corinthians", "2cor": "2 Corinthians", "2 cor": "2 Corinthians",
    "1th": "1 Thessalonians", "1 thes": "1 Thessalonians", "1thess": "1 Thessalonians",
    "2th": "2 Thessalonians", "2 thes": "2 Thessalonians", "2thess": "2 Thessalonians",
    "1ti": "1 Timothy", "1 tim": "1 Timothy", "1tim": "1 Timothy",
    "2ti": "2 Timothy", "2 tim": "2 Timothy", "2tim": "2 Timothy",
    # Common short forms
    "gen": "Genesis", "exod": "Exodus", "ex": "Exodus", "deut": "Deuteronomy",
    "rom": "Romans", "gal": "Galatians", "eph": "Ephesians", "phil": "Philippians",
    "col": "Colossians", "heb": "Hebrews", "jas": "James", "rev": "Revelation",
    "isa": "Isaiah", "jer": "Jeremiah", "prov": "Proverbs", "eccl": "Ecclesiastes",
}

# Named groupings the providers accept as testament-level scopes.
BOOK_GROUPINGS: frozenset[str] = frozenset(
    {"gospels", "pentateuch", "pauline epistles", "prophets", "wisdom", "law", "history"}
)

_BOOK_WORDS = (
    r"Genesis|Exodus|Leviticus|Numbers|Deuteronomy|Joshua|Judges|Ruth|Samuel|Kings|"
    r"Chronicles|Ezra|Nehemiah|Esther|Job|Psalms?|Proverbs|Ecclesiastes|"
    r"Song\s?of\s?(?:Solomon|Songs)|Isaiah|Jeremiah|Lamentations|Ezekiel|Daniel|Hosea|"
    r"Joel|Amos|Obadiah|Jonah|Micah|Nahum|Habakkuk|Zephaniah|Haggai|Zechariah|Malachi|"
    r"Matthew|Mark|Luke|John|Acts|Romans|Corinthians|Galatians|Ephesians|Philippians|"
    r"Colossians|Thessalonians|Timothy|Titus|Philemon|Hebrews|James|Peter|Jude|Revelation"
)
SCRIPTURE_REFERENCE_RE = re.compile(
    rf"\b((?:[1-3]\s?)?(?:{_BOOK_WORDS}))\s+(\d{{1,3}})(?::(\d{{1,3}})(?:\s?[-–]\s?(\d{{1,3}}))?)?",
    re.IGNORECASE,
)


def normalize_book_name(name: str) -> str | None:
    """Normalize various aliases/abbreviations to canonical book names.

    Returns None if the name cannot be normalized to a canonical key.
    """
    key = re.sub(r"\s+", " ", name.strip().lower())
    if key in BOOK_ALIASES:
        return BOOK_ALIASES[key]
    compact = key.replace(" ", "")
    if compact in BOOK_ALIASES:
        return BOOK_ALIASES[compact]
    for canonical, meta in BOOK_MAP.items():
        if canonical.lower() == key or meta["ref_abbr"].lower() == compact:
            return canonical
    return None


def testament_for_book(name: str) -> str | None:
    """Return ``OT``/``NT`` for a book name or alias, ``None`` if unknown."""
    canonical = normalize_book_name(name)
    if canonical is None:
        return None
    return BOOK_MAP[canonical]["testament"]


def find_scripture_references(text: str) -> list[str]:
    """Return scripture references mentioned in ``text`` in order, de-duplicated."""
    seen: set[str] = set()
    ordered: list[str] = []
    for match in SCRIPTURE_REFERENCE_RE.finditer(text):
        ref = re.sub(r"\s+", " ", match.group(0).strip())
        if ref not in seen:
            seen.add(ref)
            ordered.append(ref)
    return ordered


__all__ = [
    "OLD_TESTAMENT",
    "NEW_TESTAMENT",
    "BOOK_MAP",
    "BOOK_ALIASES",
    "BOOK_GROUPINGS",
    "SCRIPTURE_REFERENCE_RE",
    "normalize_book_name",
    "testament_for_book",
    "find_scripture_references",
]
