# File: crudgen/templates.py
"""
CrudGen - Stub Rendering
=========================
Renders the bundled ``crudgen/stubs/*.stub`` files (or project-level
overrides) with the placeholder values computed by the planner.

Stubs are Jinja2 templates whose only feature in use is ``{{ placeholder }}``
substitution.  Two guards make a missing value impossible to miss:

1. before rendering, the placeholders a stub declares are compared with the
   supplied values and every missing name is reported at once;
2. the environment uses ``StrictUndefined``, so anything that slips past the
   first check still fails instead of rendering as an empty string.

Both surface as ``UnfilledPlaceholderError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Set

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateNotFound,
    UndefinedError,
    meta,
    nodes,
)

from crudgen.exceptions import UnfilledPlaceholderError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.templates")

STUB_SUFFIX: str = ".stub"

STUB_NAMES: FrozenSet[str] = frozenset({"model", "migration", "controller", "request"})


class TemplateRenderer:
    """
    Renders stubs by name (``"model"`` → ``model.stub``).

    Args:
        stubs_dir: Optional directory searched before the bundled stubs, so a
            project can publish and customise its own copies.
    """

    def __init__(self, stubs_dir: Optional[Path] = None) -> None:
        loaders: list = []
        if stubs_dir is not None:
            loaders.append(FileSystemLoader(str(stubs_dir)))
        loaders.append(PackageLoader("crudgen", "stubs"))

        self._loader: ChoiceLoader = ChoiceLoader(loaders)
        self._env: Environment = Environment(
            loader=self._loader,
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        # range, dict, namespace ... would otherwise satisfy a placeholder
        self._env.globals.clear()
        self._placeholder_cache: Dict[str, FrozenSet[str]] = {}
        logger.debug(
            "TemplateRenderer initialised (override dir: %s).", stubs_dir or "none"
        )

    @staticmethod
    def _filename(name: str) -> str:
        return name if name.endswith(STUB_SUFFIX) else f"{name}{STUB_SUFFIX}"

    def source(self, name: str) -> str:
        """Raw stub text."""
        filename: str = self._filename(name)
        text, _, _ = self._loader.get_source(self._env, filename)
        return text

    def placeholders(self, name: str) -> FrozenSet[str]:
        """Every placeholder the stub declares."""
        if name not in self._placeholder_cache:
            ast = self._env.parse(self.source(name))
            stored: Set[str] = {
                n.name for n in ast.find_all(nodes.Name) if n.ctx != "load"
            }
            loaded: Set[str] = {
                n.name for n in ast.find_all(nodes.Name) if n.ctx == "load"
            }
            self._placeholder_cache[name] = frozenset(
                meta.find_undeclared_variables(ast) | (loaded - stored)
            )
        return self._placeholder_cache[name]

    def render(self, name: str, values: Mapping[str, str]) -> str:
        """
        Render stub *name* with *values*.

        Raises:
            UnfilledPlaceholderError: a declared placeholder has no value.
            TemplateNotFound: no stub with that name exists.
        """
        missing: FrozenSet[str] = self.placeholders(name) - set(values)
        if missing:
            raise UnfilledPlaceholderError(name, missing)

        template = self._env.get_template(self._filename(name))
        try:
            content: str = template.render(**values)
        except UndefinedError as exc:
            raise UnfilledPlaceholderError(name, [str(exc)]) from exc

        logger.debug(
            "Rendered stub '%s': %d lines.", name, content.count("\n") + 1
        )
        return content


__all__: List[str] = [
    "STUB_NAMES",
    "STUB_SUFFIX",
    "TemplateNotFound",
    "TemplateRenderer",
]
