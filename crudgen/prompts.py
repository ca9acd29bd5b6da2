# File: crudgen/prompts.py
"""
CrudGen - Interaction Layer
============================
Everything the pipeline needs to ask a human (or a script):

- the attributes and relations of an entity,
- whether an existing file may be overwritten,
- whether a missing related entity should be generated as well.

``ConsolePrompter`` asks on stdin/stdout and re-asks until an answer is
valid; ``ScriptedPrompter`` answers from a mapping (a description file).
Both produce ``Attribute`` / ``Relation`` instances through the helpers in
``crudgen.validators``, so raw answers are normalised in one place.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    TextIO,
    Union,
)

from crudgen.exceptions import CrudGenError, DescriptionFileError
from crudgen.models import Attribute, EntityDescription, Relation, RelationKind, ValueType
from crudgen.planner import Expander
from crudgen.utils import entity_name
from crudgen.validators import (
    make_attribute,
    make_relation,
    parse_attributes,
    parse_relations,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.prompts")

_YES: FrozenSet[str] = frozenset({"y", "yes", "true", "1"})
_NO: FrozenSet[str] = frozenset({"n", "no", "false", "0"})


class Prompter(Protocol):
    """What the generator asks during one invocation."""

    def ask_attributes(self, entity: str) -> List[Attribute]: ...

    def ask_relations(self, entity: str) -> List[Relation]: ...

    def confirm_overwrite(self, path: Path) -> bool: ...

    def confirm_create_related(self, entity: str) -> bool: ...


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------


class ConsolePrompter:
    """
    Interactive prompter.

    Args:
        input_fn: Callable used to read one answer; ``input`` by default.
        output: Stream questions and hints are written to.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
    ) -> None:
        self._input: Callable[[str], str] = input_fn
        self._output: TextIO = output or sys.stdout

    # -- Low-level helpers --------------------------------------------------

    def _say(self, message: str) -> None:
        print(message, file=self._output)

    def _ask(self, question: str, default: str = "") -> str:
        suffix: str = f" [{default}]" if default else ""
        answer: str = self._input(f"{question}{suffix}: ").strip()
        return answer or default

    def _confirm(self, question: str, default: bool) -> bool:
        hint: str = "Y/n" if default else "y/N"
        while True:
            answer: str = self._input(f"{question} [{hint}]: ").strip().lower()
            if not answer:
                return default
            if answer in _YES:
                return True
            if answer in _NO:
                return False
            self._say("Please answer yes or no.")

    def _choice(self, question: str, choices: Sequence[str], default: str) -> str:
        self._say(f"{question} ({', '.join(choices)})")
        return self._ask("  choice", default)

    # -- Prompter -----------------------------------------------------------

    def ask_attributes(self, entity: str) -> List[Attribute]:
        self._say(f"Attributes for {entity} (leave the name empty to finish).")
        attributes: List[Attribute] = []
        types: List[str] = [t.value for t in ValueType]

        while True:
            name: str = self._ask("Attribute name")
            if not name:
                return attributes
            while True:
                value_type: str = self._choice(
                    f"Type of '{name}'", types, ValueType.STRING.value
                )
                nullable: bool = self._confirm(f"Can '{name}' be null?", False)
                try:
                    attribute: Attribute = make_attribute(
                        name,
                        value_type,
                        nullable,
                        existing=[a.name for a in attributes],
                    )
                except CrudGenError as exc:
                    self._say(f"  ✗ {exc}")
                    if not self._confirm("Try this attribute again?", True):
                        break
                    name = self._ask("Attribute name", name)
                    continue
                attributes.append(attribute)
                break

    def ask_relations(self, entity: str) -> List[Relation]:
        relations: List[Relation] = []
        kinds: List[str] = [k.value for k in RelationKind]

        while self._confirm(f"Add a relation to {entity}?", False):
            kind: str = self._choice("Relation type", kinds, RelationKind.BELONGS_TO.value)
            related: str = self._ask("Related model")
            try:
                relations.append(make_relation(kind, related))
            except CrudGenError as exc:
                self._say(f"  ✗ {exc}")
        return relations

    def confirm_overwrite(self, path: Path) -> bool:
        return self._confirm(f"{path} already exists. Overwrite?", False)

    def confirm_create_related(self, entity: str) -> bool:
        return self._confirm(
            f"Model {entity} does not exist. Generate it now?", True
        )


# ---------------------------------------------------------------------------
# Scripted
# ---------------------------------------------------------------------------


class ScriptedPrompter:
    """
    Answers from data instead of a terminal.

    Args:
        entities: ``{EntityName: {"attributes": [...], "relations": [...]}}``.
        overwrite: Answer for every overwrite question, or a mapping from
            path (as a string, relative to the project) to answer.  Paths
            missing from the mapping are not overwritten.
        create_related: Whether related entities present in *entities* may
            be generated.  Entities without answers are never generated.
    """

    def __init__(
        self,
        entities: Optional[Mapping[str, Mapping[str, Any]]] = None,
        *,
        overwrite: Union[bool, Mapping[str, bool]] = False,
        create_related: bool = True,
    ) -> None:
        self._entities: Dict[str, Mapping[str, Any]] = {}
        for key, answers in (entities or {}).items():
            if answers is not None and not isinstance(answers, Mapping):
                raise DescriptionFileError(
                    f"Answers for entity '{key}' must be a mapping, "
                    f"got {type(answers).__name__}."
                )
            self._entities[entity_name(key)] = answers or {}
        self._overwrite: Union[bool, Mapping[str, bool]] = overwrite
        self._create_related: bool = create_related
        self.asked: List[str] = []

    def _answers(self, entity: str) -> Mapping[str, Any]:
        return self._entities.get(entity_name(entity), {})

    def ask_attributes(self, entity: str) -> List[Attribute]:
        self.asked.append(f"attributes:{entity}")
        return parse_attributes(self._answers(entity).get("attributes") or [])

    def ask_relations(self, entity: str) -> List[Relation]:
        self.asked.append(f"relations:{entity}")
        return parse_relations(self._answers(entity).get("relations") or [])

    def confirm_overwrite(self, path: Path) -> bool:
        self.asked.append(f"overwrite:{path.as_posix()}")
        if isinstance(self._overwrite, bool):
            return self._overwrite
        return bool(self._overwrite.get(path.as_posix(), False))

    def confirm_create_related(self, entity: str) -> bool:
        self.asked.append(f"create_related:{entity}")
        scripted: bool = entity_name(entity) in self._entities
        if self._create_related and not scripted:
            logger.debug("No scripted answers for %s; not generating it.", entity)
        return self._create_related and scripted


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def describe_entity(prompter: Prompter, name: str) -> EntityDescription:
    """Ask *prompter* for everything about entity *name*."""
    canonical: str = entity_name(name)
    return EntityDescription(
        name=canonical,
        attributes=tuple(prompter.ask_attributes(canonical)),
        relations=tuple(prompter.ask_relations(canonical)),
    )


def make_expander(prompter: Prompter) -> Expander:
    """Expander that confirms, then describes, a missing related entity."""

    def expand(related: str) -> Optional[EntityDescription]:
        if not prompter.confirm_create_related(related):
            return None
        return describe_entity(prompter, related)

    return expand


__all__: List[str] = [
    "ConsolePrompter",
    "Prompter",
    "ScriptedPrompter",
    "describe_entity",
    "make_expander",
]
