# File: crudgen/utils.py
"""
CrudGen - Naming Utilities & File Helpers
==========================================
Identifier inflection (singular / plural) and casing (camel, snake, studly,
kebab) used by every stage of the pipeline, plus the handful of file-system
helpers the writer relies on.

Every artifact derives its names through these functions, which is what keeps
the model, migration, controller, requests and routes mutually consistent.

Performance strategy:
- ALL string-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  so the many repeated calls made while planning are amortised to O(1).
- File writes go through a temp file + rename, so a crash never leaves a
  half-written artifact behind.

Known limitation: pluralisation is a suffix-based English heuristic with a
short table of irregular and uncountable words.  Anything outside that table
(``gas`` -> ``gases`` -> ``gase``, ``topaz``, ``criterion``, ``cactus`` ...) is
not inflected correctly.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from crudgen.exceptions import InvalidIdentifierError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
# Last word of a compound identifier: "LineItem" -> "Item", "line_item" -> "item"
_TAIL_WORD_RE: re.Pattern[str] = re.compile(r"(?:[A-Z]+|[A-Z][a-z]*|[a-z]+)$")
_CONSONANT_Y_RE: re.Pattern[str] = re.compile(r"[^aeiou]y$")

# ---------------------------------------------------------------------------
# Inflection tables
# ---------------------------------------------------------------------------

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "analysis": "analyses",
    "crisis": "crises",
    "status": "statuses",
    "bus": "buses",
    "campus": "campuses",
    "bonus": "bonuses",
    "virus": "viruses",
    "quiz": "quizzes",
}

_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}

# Singulars ending in "-ie"; every other "-ies" plural singularises to "-y"
_IE_SINGULARS: FrozenSet[str] = frozenset({
    "auntie",
    "brownie",
    "calorie",
    "cookie",
    "die",
    "genie",
    "goalie",
    "hoodie",
    "lie",
    "movie",
    "pie",
    "prairie",
    "rookie",
    "selfie",
    "smoothie",
    "sortie",
    "tie",
    "zombie",
})

# Singulars ending in "-che"; every other "-ches" plural drops "es"
_CHE_SINGULARS: FrozenSet[str] = frozenset({
    "ache",
    "avalanche",
    "cache",
    "cliche",
    "creche",
    "headache",
    "moustache",
    "mustache",
    "niche",
    "psyche",
    "quiche",
    "toothache",
    "tranche",
})

_UNCOUNTABLE: FrozenSet[str] = frozenset({
    "data",
    "metadata",
    "equipment",
    "information",
    "feedback",
    "software",
    "news",
    "series",
    "species",
    "sheep",
    "fish",
})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _require(name: str) -> str:
    if name is None or not str(name).strip():
        raise InvalidIdentifierError("Identifier must be a non-empty string.")
    return str(name).strip()


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


def _words(name: str) -> Tuple[str, ...]:
    words: Tuple[str, ...] = _extract_words(_require(name))
    if not words:
        raise InvalidIdentifierError(
            f"Identifier {name!r} contains no letters or digits."
        )
    return words


def _split_tail(name: str) -> Tuple[str, str]:
    """Split *name* into (head, last word)."""
    match: Optional[re.Match[str]] = _TAIL_WORD_RE.search(name)
    if match is None:
        return name, ""
    return name[: match.start()], match.group(0)


def _match_case(replacement: str, original: str) -> str:
    if len(original) > 1 and original.isupper():
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


# ---------------------------------------------------------------------------
# Cached casing functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("LineItem")
        'line_item'
        >>> to_snake_case("paidAt")
        'paid_at'
    """
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", _require(name))
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    if not s:
        raise InvalidIdentifierError(
            f"Identifier {name!r} contains no letters or digits."
        )
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_studly_case(name: str) -> str:
    """
    Convert any string to StudlyCase (a.k.a. PascalCase).

    Examples:
        >>> to_studly_case("line_item")
        'LineItem'
        >>> to_studly_case("invoice")
        'Invoice'
    """
    return "".join(word.capitalize() for word in _words(name))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("paid_at")
        'paidAt'
        >>> to_camel_case("LineItems")
        'lineItems'
    """
    words: Tuple[str, ...] = _words(name)
    return words[0] + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (used in resource URLs)."""
    return "-".join(_words(name))


# ---------------------------------------------------------------------------
# Cached inflection functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Pluralise the last word of an identifier.

    Examples:
        >>> to_plural("Invoice")
        'Invoices'
        >>> to_plural("line_category")
        'line_categories'
        >>> to_plural("Person")
        'People'
    """
    name = _require(name)
    head, tail = _split_tail(name)
    lower: str = tail.lower()

    if not tail or lower in _UNCOUNTABLE:
        return name if tail else name + "s"
    if lower in _IRREGULAR_PLURALS:
        return head + _match_case(_IRREGULAR_PLURALS[lower], tail)
    if _CONSONANT_Y_RE.search(lower):
        return name[:-1] + "ies"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """
    Singularise the last word of an identifier (inverse of ``to_plural``).

    Already-singular input is returned unchanged.

    Examples:
        >>> to_singular("Categories")
        'Category'
        >>> to_singular("line_items")
        'line_item'
        >>> to_singular("Invoice")
        'Invoice'
    """
    name = _require(name)
    head, tail = _split_tail(name)
    lower: str = tail.lower()

    if not tail or lower in _UNCOUNTABLE:
        return name
    if lower in _IRREGULAR_SINGULARS:
        return head + _match_case(_IRREGULAR_SINGULARS[lower], tail)
    if lower in _IRREGULAR_PLURALS:
        return name
    if lower.endswith("ies") and len(lower) > 3:
        if lower[:-1] in _IE_SINGULARS:
            return name[:-1]
        return name[:-3] + "y"
    if lower.endswith("ches"):
        return name[:-1] if lower[:-1] in _CHE_SINGULARS else name[:-2]
    if lower.endswith("zes"):
        # buzz -> buzzes, waltz -> waltzes; size -> sizes
        return name[:-2] if lower.endswith(("zzes", "tzes")) else name[:-1]
    if lower.endswith(("sses", "xes", "shes")):
        return name[:-2]
    if lower.endswith(("ss", "us", "is")):
        return name
    if lower.endswith("s"):
        return name[:-1]
    return name


@functools.lru_cache(maxsize=None)
def entity_name(raw: str) -> str:
    """
    Canonical entity identifier: singular StudlyCase.

    Examples:
        >>> entity_name("invoices")
        'Invoice'
        >>> entity_name("line_items")
        'LineItem'
    """
    return to_singular(to_studly_case(raw))


# ---------------------------------------------------------------------------
# Code formatting helpers
# ---------------------------------------------------------------------------


def php_string(value: str) -> str:
    """Wrap *value* in a single-quoted PHP string literal."""
    escaped: str = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def indent_lines(lines: Sequence[str], level: int = 1, size: int = 4) -> List[str]:
    """Indent a list of lines, returning a new list."""
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else line for line in lines]


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    first and then renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)
    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def append_file(path: Path, content: str) -> int:
    """Append *content* to *path*, creating it if missing.  Returns bytes written."""
    ensure_directory(path.parent)
    encoded: bytes = content.encode("utf-8")
    with open(path, "ab") as fh:
        fh.write(encoded)
    logger.debug("Appended %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


def sha256_hex(content: str) -> str:
    """SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("plan") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_studly_case",
    "to_camel_case",
    "to_kebab_case",
    "to_plural",
    "to_singular",
    "entity_name",
    "php_string",
    "indent_lines",
    "ensure_directory",
    "write_file",
    "append_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("crudgen.utils loaded — %d public symbols.", len(__all__))
