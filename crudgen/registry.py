# File: crudgen/registry.py
"""
CrudGen - Entity Registry
==========================
Which entities "exist" for the purpose of related-entity expansion: models
already present in the target application plus everything planned so far in
the current invocation.

The registry also keeps the chain of entities *currently being planned*.
Entering an entity that is already on the chain means two entities are each
waiting on the other to be generated first, and raises
``CyclicRelationError`` instead of recursing forever.

It is passed explicitly through the planner call chain; there is no global
instance.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set

from crudgen.exceptions import CyclicRelationError, ExpansionDepthError
from crudgen.utils import entity_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.registry")


class EntityRegistry:
    """
    Known entities plus the in-progress planning chain.

    Usage::

        registry = EntityRegistry.scan(Path("app/Models"))
        registry.enter("Invoice")
        ...
        registry.leave("Invoice")
        registry.add("Invoice")
    """

    def __init__(
        self,
        known: Iterable[str] = (),
        *,
        max_depth: Optional[int] = None,
    ) -> None:
        self._known: Set[str] = {entity_name(n) for n in known}
        self._chain: List[str] = []
        self._max_depth: Optional[int] = max_depth

    @classmethod
    def scan(
        cls,
        models_path: Path,
        *,
        max_depth: Optional[int] = None,
    ) -> "EntityRegistry":
        """Seed the registry with every ``*.php`` model file in *models_path*."""
        names: List[str] = []
        if models_path.is_dir():
            names = sorted(p.stem for p in models_path.glob("*.php"))
        logger.debug(
            "Registry seeded from %s: %s", models_path, ", ".join(names) or "(none)"
        )
        return cls(names, max_depth=max_depth)

    # -- Known entities -----------------------------------------------------

    def knows(self, name: str) -> bool:
        return entity_name(name) in self._known

    def add(self, name: str) -> None:
        self._known.add(entity_name(name))

    @property
    def known(self) -> List[str]:
        return sorted(self._known)

    # -- Planning chain -----------------------------------------------------

    @property
    def chain(self) -> List[str]:
        return list(self._chain)

    @property
    def depth(self) -> int:
        return len(self._chain)

    def in_progress(self, name: str) -> bool:
        return entity_name(name) in self._chain

    def enter(self, name: str) -> None:
        """
        Push *name* onto the planning chain.

        Raises:
            CyclicRelationError: *name* is already being planned.
            ExpansionDepthError: the chain would exceed ``max_depth`` expansions.
        """
        canonical: str = entity_name(name)
        if canonical in self._chain:
            raise CyclicRelationError(self._chain + [canonical])
        if self._max_depth is not None and len(self._chain) > self._max_depth:
            raise ExpansionDepthError(self._chain + [canonical], self._max_depth)
        self._chain.append(canonical)

    def leave(self, name: str) -> None:
        canonical: str = entity_name(name)
        if not self._chain or self._chain[-1] != canonical:
            raise RuntimeError(
                f"Registry chain out of order: leaving {canonical!r}, "
                f"chain is {self._chain!r}"
            )
        self._chain.pop()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.knows(name)

    def __repr__(self) -> str:
        return f"<EntityRegistry known={self.known} chain={self._chain}>"


__all__: List[str] = ["EntityRegistry"]
