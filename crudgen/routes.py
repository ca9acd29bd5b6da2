# File: crudgen/routes.py
"""
CrudGen - Route File Registration
==================================
The routes file is treated as a list of lines in which generated fragments
are recognised as structured entries::

    // Routes for Invoice
    Route::resource('invoices', 'InvoiceController');

``RouteFile.parse`` keeps every other line verbatim and drops repeated
fragments for the same entity.  ``register`` replaces an entity's fragment in
place or appends a new one, and ``render`` produces the whole file again, so
registering the same entity twice leaves the file unchanged.

A bare ``Route::resource`` line (without the comment) that points at
``<Entity>Controller`` is recognised as well, so hand-written registrations
are not duplicated either.  A comment only claims the following line when
that line names the same entity's controller.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Set, Tuple, Union

from crudgen.utils import php_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.routes")

_COMMENT_RE: Pattern[str] = re.compile(r"^\s*//\s*Routes for (\w+)\s*$")
_RESOURCE_RE: Pattern[str] = re.compile(
    r"^\s*Route::resource\(\s*'([^']+)'\s*,\s*"
    r"(?:'(?:[\w\\]*\\)?(\w+)'|(?:[\w\\]*\\)?(\w+)::class)\s*\)\s*;\s*$"
)

DEFAULT_HEADER: List[str] = [
    "<?php",
    "",
    "use Illuminate\\Support\\Facades\\Route;",
]


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """
    One resource registration owned by an entity.

    Entries read from an existing file keep their original lines in
    ``source`` and are written back verbatim.
    """

    entity: str
    resource: str
    controller: str
    commented: bool = True
    source: Tuple[str, ...] = field(default=(), compare=False)

    def render_lines(self) -> List[str]:
        if self.source:
            return list(self.source)
        lines: List[str] = []
        if self.commented:
            lines.append(f"// Routes for {self.entity}")
        lines.append(
            f"Route::resource({php_string(self.resource)}, "
            f"{php_string(self.controller)});"
        )
        return lines


_Segment = Union[str, RouteEntry]


def _match_resource(line: str) -> Optional[RouteEntry]:
    match = _RESOURCE_RE.match(line)
    if match is None:
        return None
    controller: str = match.group(2) or match.group(3)
    if not controller.endswith("Controller") or controller == "Controller":
        return None
    return RouteEntry(
        entity=controller[: -len("Controller")],
        resource=match.group(1),
        controller=controller,
        commented=False,
        source=(line,),
    )


class RouteFile:
    """Parsed routes file: plain lines interleaved with ``RouteEntry`` items."""

    def __init__(self, segments: Optional[List[_Segment]] = None) -> None:
        self._segments: List[_Segment] = list(segments or [])

    # -----------------------------------------------------------------
    # Parsing
    # -----------------------------------------------------------------

    @classmethod
    def parse(cls, text: Optional[str]) -> "RouteFile":
        """
        Parse *text*; ``None`` or blank text yields a file with the default
        ``<?php`` header.
        """
        if text is None or not text.strip():
            return cls(list(DEFAULT_HEADER))

        lines: List[str] = text.splitlines()
        segments: List[_Segment] = []
        seen: Set[str] = set()
        dropped: int = 0
        i: int = 0

        while i < len(lines):
            line: str = lines[i]
            entry: Optional[RouteEntry] = None
            consumed: int = 1

            comment = _COMMENT_RE.match(line)
            if comment is not None and i + 1 < len(lines):
                bare: Optional[RouteEntry] = _match_resource(lines[i + 1])
                if bare is not None and bare.entity == comment.group(1):
                    entry = RouteEntry(
                        entity=comment.group(1),
                        resource=bare.resource,
                        controller=bare.controller,
                        source=(line, lines[i + 1]),
                    )
                    consumed = 2
            if entry is None and comment is None:
                entry = _match_resource(line)

            if entry is None:
                segments.append(line)
            elif entry.entity in seen:
                dropped += 1
                if segments and segments[-1] == "":
                    segments.pop()
            else:
                seen.add(entry.entity)
                segments.append(entry)
            i += consumed

        if dropped:
            logger.info("Dropped %d duplicate route registration(s).", dropped)
        return cls(segments)

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    @property
    def entries(self) -> List[RouteEntry]:
        return [s for s in self._segments if isinstance(s, RouteEntry)]

    def find(self, entity: str) -> Optional[RouteEntry]:
        for entry in self.entries:
            if entry.entity == entity:
                return entry
        return None

    # -----------------------------------------------------------------
    # Mutation
    # -----------------------------------------------------------------

    def register(self, entry: RouteEntry) -> bool:
        """
        Add or replace the registration for ``entry.entity``.

        Returns True when the file content changed.
        """
        for index, segment in enumerate(self._segments):
            if isinstance(segment, RouteEntry) and segment.entity == entry.entity:
                if (segment.resource, segment.controller) == (
                    entry.resource,
                    entry.controller,
                ):
                    logger.debug("Routes for %s already registered.", entry.entity)
                    return False
                self._segments[index] = entry
                logger.info("Replaced route registration for %s.", entry.entity)
                return True

        while self._segments and self._segments[-1] == "":
            self._segments.pop()
        self._segments.append("")
        self._segments.append(entry)
        logger.info(
            "Registered resource route '%s' for %s.", entry.resource, entry.entity
        )
        return True

    # -----------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------

    def render(self) -> str:
        lines: List[str] = []
        for segment in self._segments:
            if isinstance(segment, RouteEntry):
                lines.extend(segment.render_lines())
            else:
                lines.append(segment)
        return "\n".join(lines) + "\n"

    def __len__(self) -> int:
        return len(self.entries)


__all__: List[str] = [
    "DEFAULT_HEADER",
    "RouteEntry",
    "RouteFile",
]
