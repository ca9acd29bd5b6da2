# File: crudgen/generator.py
"""
CrudGen - Generation Pipeline (Orchestrator)
=============================================

Connects every phase for one invocation:

    Entity description → Validation → Planning (+ related entities) →
    Rendering → Writing

The ``CrudGenerator`` class backs both the programmatic API and the CLI.

Workflow::

    1. Obtain an ``EntityDescription`` (prompter or description file).
    2. Revalidate it (validators.py); warnings are reported, not fatal.
    3. Seed an ``EntityRegistry`` from the models directory.
    4. Plan the entity and, dependencies first, every related entity the
       prompter agrees to create (planner.py).
    5. Render all artifacts, then write them (exporters.py).
    6. Return a ``GenerationReport``.

Error handling strategy:
    - The first fatal error stops the run and is recorded on the report
      together with the artifacts already written.
    - Nothing is rolled back.
    - A declined overwrite is a skip, not an error.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from crudgen.exceptions import (
    CrudGenError,
    CyclicRelationError,
    DescriptionFileError,
    ExpansionDepthError,
    UnfilledPlaceholderError,
)
from crudgen.exporters import (
    ArtifactExporter,
    ArtifactWriter,
    DryRunWriter,
    ExportResult,
    FileSystemWriter,
)
from crudgen.models import EntityDescription, EntityPlan, GenerationConfig
from crudgen.planner import ArtifactPlanner, Expander
from crudgen.prompts import Prompter, ScriptedPrompter, describe_entity, make_expander
from crudgen.registry import EntityRegistry
from crudgen.templates import TemplateNotFound, TemplateRenderer
from crudgen.utils import Timer, entity_name
from crudgen.validators import (
    ValidationResult,
    parse_attributes,
    parse_relations,
    validate_description,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.generator")

CONFIG_FILE_NAME: str = "crudgen.yaml"

# Failure stages, in pipeline order
FAILURE_DESCRIPTION: str = "description"
FAILURE_PLANNING: str = "planning"
FAILURE_WRITE: str = "write"


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``CrudGenerator.generate()``.

    On success it names every artifact written and every artifact skipped.
    On failure ``error`` holds the first fatal error and ``written`` the
    artifacts committed before it.
    """

    success: bool = False
    entity: str = ""
    project_path: str = ""
    dry_run: bool = False

    planned_entities: List[str] = field(default_factory=list)
    written: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    error: Optional[str] = None
    failure_stage: Optional[str] = None

    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append(f"{'='*60}")
        lines.append("  CrudGen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Entity:           {self.entity}")
        lines.append(f"  Project:          {self.project_path}")
        lines.append(f"  Entities planned: {', '.join(self.planned_entities) or '-'}")
        lines.append(f"  Files written:    {len(self.written)}")
        lines.append(f"  Files skipped:    {len(self.skipped)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<22s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.written:
            lines.append(f"{'─'*60}")
            lines.append(f"  Written ({len(self.written)}):")
            for path in self.written:
                lines.append(f"    ✓ {path}")

        if self.skipped:
            lines.append(f"{'─'*60}")
            lines.append(f"  Skipped ({len(self.skipped)}):")
            for path in self.skipped:
                lines.append(f"    ⊘ {path}")

        if self.warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")

        if self.error:
            lines.append(f"{'─'*60}")
            lines.append(f"  Error ({self.failure_stage}):")
            lines.append(f"    ✗ {self.error}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# File loaders
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DescriptionFileError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise DescriptionFileError(
            f"Expected a JSON object at top level of {path}, "
            f"got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise DescriptionFileError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DescriptionFileError(
            f"Expected a YAML mapping at top level of {path}, "
            f"got {type(data).__name__}."
        )
    return data


def load_description_file(path: Path) -> Dict[str, Any]:
    """
    Load a description (or config) file, JSON or YAML by extension.

    Files with another extension are tried as JSON, then as YAML.

    Raises:
        DescriptionFileError: missing, unreadable or malformed file.
    """
    if not path.is_file():
        raise DescriptionFileError(f"File not found: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s'; trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except DescriptionFileError:
        return _load_yaml_file(path)


def load_config(
    base_path: Path,
    *,
    config_file: Optional[Path] = None,
    file_overrides: Optional[Mapping[str, Any]] = None,
    cli_overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationConfig:
    """
    Build the ``GenerationConfig`` for a run.

    Precedence, lowest first: defaults, ``crudgen.yaml`` in *base_path* (or
    *config_file*), *file_overrides* (a description file's ``config``
    section), *cli_overrides*.

    Raises:
        DescriptionFileError: a config source is malformed or has unknown keys.
    """
    merged: Dict[str, Any] = {}

    source: Path = config_file or (base_path / CONFIG_FILE_NAME)
    if config_file is not None or source.is_file():
        merged.update(load_description_file(source))
        logger.info("Loaded configuration from %s.", source)

    if file_overrides:
        merged.update(file_overrides)
    if cli_overrides:
        merged.update({k: v for k, v in cli_overrides.items() if v is not None})

    merged["base_path"] = base_path
    try:
        return GenerationConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise DescriptionFileError(f"Invalid configuration: {exc}") from exc


# ---------------------------------------------------------------------------
# Description files
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedDescription:
    """Everything a description file supplies."""

    description: EntityDescription
    prompter: ScriptedPrompter
    config: Dict[str, Any]


def _section(raw: Mapping[str, Any], key: str, expected: type) -> Any:
    value: Any = raw.get(key)
    if value is None:
        return expected()
    if not isinstance(value, expected):
        raise DescriptionFileError(
            f"'{key}' must be a {expected.__name__}, got {type(value).__name__}."
        )
    return value


def parse_description(
    raw: Mapping[str, Any],
    name: Optional[str] = None,
) -> ParsedDescription:
    """
    Build the entity description and a ``ScriptedPrompter`` from a loaded
    description file.

    The entity comes from the ``entity`` section, or from ``entities[name]``
    when there is no ``entity`` section.  *name* fills in a missing
    ``entity.name``; a different name in the file is an error.

    Raises:
        DescriptionFileError: structural problems.
        InvalidAttributeError / UnknownValueTypeError /
        UnknownRelationKindError / InvalidIdentifierError: bad entries.
    """
    entities: Dict[str, Any] = _section(raw, "entities", dict)
    config: Dict[str, Any] = _section(raw, "config", dict)
    entity_raw: Dict[str, Any] = _section(raw, "entity", dict)

    if not entity_raw and name is not None:
        canonical_entities: Dict[str, Any] = {
            entity_name(k): v for k, v in entities.items()
        }
        entity_raw = canonical_entities.get(entity_name(name)) or {}
        if not isinstance(entity_raw, dict):
            raise DescriptionFileError(
                f"'entities.{entity_name(name)}' must be a dict, "
                f"got {type(entity_raw).__name__}."
            )

    file_name: Optional[str] = entity_raw.get("name")
    if file_name and name and entity_name(file_name) != entity_name(name):
        raise DescriptionFileError(
            f"Description file describes '{entity_name(file_name)}', "
            f"not '{entity_name(name)}'."
        )
    resolved: Optional[str] = file_name or name
    if not resolved:
        raise DescriptionFileError("No entity name given.")

    description: EntityDescription = EntityDescription(
        name=entity_name(resolved),
        attributes=tuple(parse_attributes(entity_raw.get("attributes") or [])),
        relations=tuple(parse_relations(entity_raw.get("relations") or [])),
    )

    overwrite: Union[bool, Mapping[str, bool]] = raw.get("overwrite", False)
    if not isinstance(overwrite, (bool, dict)):
        raise DescriptionFileError("'overwrite' must be a boolean or a mapping.")

    prompter: ScriptedPrompter = ScriptedPrompter(
        entities=entities,
        overwrite=overwrite,
        create_related=bool(raw.get("create_related", True)),
    )
    return ParsedDescription(description=description, prompter=prompter, config=config)


# ---------------------------------------------------------------------------
# CrudGenerator — orchestrator
# ---------------------------------------------------------------------------


class CrudGenerator:
    """
    Pipeline orchestrator for one project.

    Usage::

        generator = CrudGenerator(config, ConsolePrompter())
        report = generator.generate_interactive("Invoice")
        print(report.summary())

    Args:
        config: Layout, namespaces and expansion settings.
        prompter: Answers questions during the run.
        writer: Defaults to a ``FileSystemWriter`` (or ``DryRunWriter``)
            rooted at ``config.base_path``.
        overwrite: ``True``/``False`` to answer every overwrite question
            without asking, ``None`` to ask the prompter.
        dry_run: Record writes instead of performing them.
        clock: Source of the migration timestamp.
    """

    def __init__(
        self,
        config: GenerationConfig,
        prompter: Prompter,
        *,
        writer: Optional[ArtifactWriter] = None,
        renderer: Optional[TemplateRenderer] = None,
        overwrite: Optional[bool] = None,
        dry_run: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config: GenerationConfig = config
        self._prompter: Prompter = prompter
        self._dry_run: bool = dry_run
        self._writer: ArtifactWriter = writer or (
            DryRunWriter(config.base_path)
            if dry_run
            else FileSystemWriter(config.base_path)
        )
        self._renderer: TemplateRenderer = renderer or TemplateRenderer(
            self._resolve_stubs_dir()
        )
        self._overwrite: Optional[bool] = overwrite
        self._clock: Callable[[], datetime] = clock
        self._planner: ArtifactPlanner = ArtifactPlanner(config)

        logger.debug(
            "CrudGenerator initialised: base=%s, dry_run=%s, overwrite=%s.",
            config.base_path,
            dry_run,
            overwrite,
        )

    @property
    def writer(self) -> ArtifactWriter:
        return self._writer

    def _resolve_stubs_dir(self) -> Optional[Path]:
        stubs_dir: Optional[Path] = self._config.stubs_dir
        if stubs_dir is None or stubs_dir.is_absolute():
            return stubs_dir
        return self._config.base_path / stubs_dir

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def describe(self, name: str) -> EntityDescription:
        """Ask the prompter for the attributes and relations of *name*."""
        return describe_entity(self._prompter, name)

    def generate_interactive(self, name: str) -> GenerationReport:
        """Describe *name* through the prompter, then generate it."""
        report: GenerationReport = self._new_report(name)
        try:
            description: EntityDescription = self.describe(name)
        except CrudGenError as exc:
            self._fail(report, FAILURE_DESCRIPTION, exc)
            return self._finalise_report(report, 0.0)
        return self.generate(description, report=report)

    def generate(
        self,
        description: EntityDescription,
        *,
        registry: Optional[EntityRegistry] = None,
        report: Optional[GenerationReport] = None,
    ) -> GenerationReport:
        """
        Validate, plan, render and write *description* and its related
        entities.
        """
        report = report or self._new_report(description.name)
        report.entity = description.name
        pipeline_start: float = time.perf_counter()

        if not self._step_validate(description, report):
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        registry = registry or EntityRegistry.scan(
            self._config.models_path,
            max_depth=self._config.max_expansion_depth,
        )
        plans: Optional[List[EntityPlan]] = self._step_plan(
            description, registry, report
        )
        if plans is not None:
            self._step_export(plans, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        description: EntityDescription,
        report: GenerationReport,
    ) -> bool:
        with Timer("validation") as t:
            try:
                result: ValidationResult = validate_description(description)
            except CrudGenError as exc:
                self._fail(report, FAILURE_DESCRIPTION, exc)
                report.step_metrics.append(GenerationStepMetric(
                    step_name="Validate Description",
                    success=False,
                    elapsed_seconds=t.elapsed,
                    detail=str(exc),
                ))
                return False

        report.warnings.extend(i.message for i in result.warnings)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Description",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(result.warnings)} warning(s)",
        ))
        return True

    def _step_plan(
        self,
        description: EntityDescription,
        registry: EntityRegistry,
        report: GenerationReport,
    ) -> Optional[List[EntityPlan]]:
        expander: Optional[Expander] = (
            make_expander(self._prompter) if self._config.create_related else None
        )
        plans: Optional[List[EntityPlan]] = None
        detail: str = ""

        with Timer("planning") as t:
            try:
                plans = self._planner.plan(
                    description, registry, expander, self._clock()
                )
            except (CyclicRelationError, ExpansionDepthError) as exc:
                self._fail(report, FAILURE_PLANNING, exc)
                detail = str(exc)
            except CrudGenError as exc:
                self._fail(report, FAILURE_DESCRIPTION, exc)
                detail = str(exc)

        if plans is not None:
            report.planned_entities = [p.entity for p in plans]
            detail = f"{len(plans)} entit{'y' if len(plans) == 1 else 'ies'}"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Plan Artifacts",
            success=plans is not None,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))
        return plans

    def _step_export(
        self,
        plans: List[EntityPlan],
        report: GenerationReport,
    ) -> None:
        exporter: ArtifactExporter = ArtifactExporter(
            self._writer,
            self._renderer,
            self._prompter,
            overwrite=self._overwrite,
        )
        result: ExportResult = ExportResult()
        success: bool = False

        with Timer("export") as t:
            try:
                exporter.export(plans, result)
                success = True
            except (UnfilledPlaceholderError, TemplateNotFound) as exc:
                self._fail(report, FAILURE_PLANNING, exc)
            except OSError as exc:
                self._fail(report, FAILURE_WRITE, exc)

        report.written = result.written_paths
        report.skipped = [f"{s.relative_path} ({s.reason})" for s in result.skipped]
        report.total_bytes = result.total_bytes
        report.total_lines = result.total_lines
        report.step_metrics.append(GenerationStepMetric(
            step_name="Write Artifacts",
            success=success,
            elapsed_seconds=t.elapsed,
            detail=f"{len(result.written)} written, {len(result.skipped)} skipped",
        ))

    # -----------------------------------------------------------------
    # Internal: report helpers
    # -----------------------------------------------------------------

    def _new_report(self, name: str) -> GenerationReport:
        return GenerationReport(
            entity=name,
            project_path=str(self._config.base_path),
            dry_run=self._dry_run,
        )

    @staticmethod
    def _fail(report: GenerationReport, stage: str, exc: BaseException) -> None:
        if report.error is None:
            report.error = f"{type(exc).__name__}: {exc}"
            report.failure_stage = stage
        logger.error("Generation failed (%s): %s", stage, exc)

    @staticmethod
    def _finalise_report(
        report: GenerationReport,
        total_elapsed: float,
    ) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = report.error is None
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CONFIG_FILE_NAME",
    "CrudGenerator",
    "FAILURE_DESCRIPTION",
    "FAILURE_PLANNING",
    "FAILURE_WRITE",
    "GenerationReport",
    "GenerationStepMetric",
    "ParsedDescription",
    "load_config",
    "load_description_file",
    "parse_description",
]

logger.debug("crudgen.generator loaded.")
