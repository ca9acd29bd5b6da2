# File: crudgen/exceptions.py
"""
CrudGen - Exception Hierarchy
==============================
Every error the generation pipeline raises on purpose derives from
``CrudGenError`` so the CLI can map it to an exit code.  ``OSError`` coming
out of an ``ArtifactWriter`` is deliberately *not* wrapped: it propagates
as-is and the generator records it as the fatal error of the run.
"""

from __future__ import annotations

from typing import List, Sequence


class CrudGenError(Exception):
    """Base class for all CrudGen errors."""


class InvalidIdentifierError(CrudGenError, ValueError):
    """An identifier is empty or contains no usable characters."""


class InvalidAttributeError(CrudGenError):
    """Empty or duplicate attribute name within one entity."""

    def __init__(self, message: str, attribute: str = "") -> None:
        super().__init__(message)
        self.attribute: str = attribute


class UnknownValueTypeError(CrudGenError):
    """An attribute type outside the seven supported value types."""

    def __init__(self, value_type: object) -> None:
        super().__init__(
            f"Unknown attribute type {value_type!r}. Expected one of: "
            "string, integer, float, boolean, date, datetime, text."
        )
        self.value_type: object = value_type


class UnknownRelationKindError(CrudGenError):
    """A relation kind outside hasOne / hasMany / belongsTo / belongsToMany."""

    def __init__(self, kind: object) -> None:
        super().__init__(
            f"Unknown relation kind {kind!r}. Expected one of: "
            "hasOne, hasMany, belongsTo, belongsToMany."
        )
        self.kind: object = kind


class CyclicRelationError(CrudGenError):
    """Recursive expansion re-entered an entity that is still being planned."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain: List[str] = list(chain)
        super().__init__(
            "Cyclic relation detected while expanding related entities: "
            + " -> ".join(self.chain)
        )


class ExpansionDepthError(CrudGenError):
    """Recursive expansion went deeper than the configured limit."""

    def __init__(self, chain: Sequence[str], max_depth: int) -> None:
        self.chain: List[str] = list(chain)
        self.max_depth: int = max_depth
        super().__init__(
            f"Related-entity expansion exceeded the maximum depth of {max_depth}: "
            + " -> ".join(self.chain)
        )


class UnfilledPlaceholderError(CrudGenError):
    """A template declares placeholders that were not given a value."""

    def __init__(self, template: str, missing: Sequence[str]) -> None:
        self.template: str = template
        self.missing: List[str] = sorted(missing)
        super().__init__(
            f"Template '{template}' has unfilled placeholder(s): "
            + ", ".join(self.missing)
        )


class DescriptionFileError(CrudGenError):
    """A description or config file could not be loaded or parsed."""


__all__: List[str] = [
    "CrudGenError",
    "InvalidIdentifierError",
    "InvalidAttributeError",
    "UnknownValueTypeError",
    "UnknownRelationKindError",
    "CyclicRelationError",
    "ExpansionDepthError",
    "UnfilledPlaceholderError",
    "DescriptionFileError",
]
