# File: crudgen/exporters.py
"""
CrudGen - Artifact Exporter (File-System Manager)
==================================================

Responsible for:
    1. Rendering every planned artifact before anything is written, so a
       broken stub aborts the run with the project untouched.
    2. Asking before an existing file is replaced.  A declined overwrite
       skips that one artifact; the rest are still written.
    3. Merging route registrations into the routes file instead of
       overwriting it.  A registration that only adds to the end of the
       file is appended; anything else rewrites the file.
    4. Writing over the project's existing migration for a table rather
       than adding a second one with a new timestamp.
    5. Recording what was written (size, lines, checksum) and what was
       skipped.

Writers are pluggable (``ArtifactWriter``): ``FileSystemWriter`` writes under
the project root, ``DryRunWriter`` only records, ``InMemoryWriter`` keeps
everything in a dict.

Write errors are not caught here.  ``OSError`` propagates to the caller,
which still sees every artifact committed before the failure in the
``ExportResult`` it passed in.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Protocol, Sequence, Tuple

from crudgen.models import ArtifactKind, EntityPlan, RenderedArtifact
from crudgen.prompts import Prompter
from crudgen.routes import RouteEntry, RouteFile
from crudgen.templates import TemplateRenderer
from crudgen.utils import (
    Timer,
    count_lines,
    ensure_directory,
    append_file,
    read_file,
    sha256_hex,
    write_file,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.exporters")

SKIP_OVERWRITE_DECLINED: str = "overwrite declined"
SKIP_ALREADY_REGISTERED: str = "already registered"

# "2024_05_01_120000_create_invoices_table.php" -> "create_invoices_table.php"
_MIGRATION_NAME_RE: Pattern[str] = re.compile(
    r"^\d{4}_\d{2}_\d{2}_\d{6}_(create_\w+_table\.php)$"
)


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written artifact."""

    entity: str
    kind: ArtifactKind
    relative_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=True, slots=True)
class SkippedArtifact:
    entity: str
    kind: ArtifactKind
    relative_path: str
    reason: str


@dataclass(frozen=False, slots=True)
class ExportResult:
    """
    What ``ArtifactExporter.export()`` did, filled in as it goes.

    Pass an instance in to keep the partial record when a write fails.
    """

    written: List[FileRecord] = field(default_factory=list)
    skipped: List[SkippedArtifact] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.written)

    @property
    def total_lines(self) -> int:
        return sum(r.line_count for r in self.written)

    @property
    def written_paths(self) -> List[str]:
        return [r.relative_path for r in self.written]

    @property
    def skipped_paths(self) -> List[str]:
        return [s.relative_path for s in self.skipped]


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


class ArtifactWriter(Protocol):
    """File access used by the exporter.  Paths are project-relative."""

    def exists(self, path: Path) -> bool: ...

    def read(self, path: Path) -> str: ...

    def write(self, path: Path, content: str) -> int: ...

    def append(self, path: Path, content: str) -> int: ...

    def list_files(self, directory: Path) -> List[Path]: ...

    def make_directory(self, path: Path) -> None: ...


class FileSystemWriter:
    """Writes under *base_path*, atomically (temp file + rename)."""

    def __init__(self, base_path: Path, *, atomic_writes: bool = True) -> None:
        self._base_path: Path = Path(base_path)
        self._atomic_writes: bool = atomic_writes

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _resolve(self, path: Path) -> Path:
        return self._base_path / path

    def exists(self, path: Path) -> bool:
        return self._resolve(path).is_file()

    def read(self, path: Path) -> str:
        return read_file(self._resolve(path))

    def write(self, path: Path, content: str) -> int:
        return write_file(self._resolve(path), content, atomic=self._atomic_writes)

    def append(self, path: Path, content: str) -> int:
        return append_file(self._resolve(path), content)

    def list_files(self, directory: Path) -> List[Path]:
        target: Path = self._resolve(directory)
        if not target.is_dir():
            return []
        return sorted(
            Path(directory) / entry.name for entry in target.iterdir() if entry.is_file()
        )

    def make_directory(self, path: Path) -> None:
        ensure_directory(self._resolve(path))


class InMemoryWriter:
    """Keeps files in ``self.files`` (posix path → content)."""

    def __init__(self, files: Optional[Dict[str, str]] = None) -> None:
        self.files: Dict[str, str] = dict(files or {})
        self.directories: List[str] = []

    @staticmethod
    def _key(path: Path) -> str:
        return Path(path).as_posix()

    def exists(self, path: Path) -> bool:
        return self._key(path) in self.files

    def read(self, path: Path) -> str:
        try:
            return self.files[self._key(path)]
        except KeyError:
            raise FileNotFoundError(self._key(path)) from None

    def write(self, path: Path, content: str) -> int:
        self.files[self._key(path)] = content
        return len(content.encode("utf-8"))

    def append(self, path: Path, content: str) -> int:
        key: str = self._key(path)
        self.files[key] = self.files.get(key, "") + content
        return len(content.encode("utf-8"))

    def list_files(self, directory: Path) -> List[Path]:
        parent: str = self._key(directory)
        return sorted(
            Path(key) for key in self.files if Path(key).parent.as_posix() == parent
        )

    def make_directory(self, path: Path) -> None:
        self.directories.append(self._key(path))


class DryRunWriter(InMemoryWriter):
    """
    Reads the real project under *base_path* but records writes in memory.

    Later reads see earlier recorded writes, so a dry run behaves like the
    real run would.
    """

    def __init__(self, base_path: Path) -> None:
        super().__init__()
        self._disk: FileSystemWriter = FileSystemWriter(base_path)

    def exists(self, path: Path) -> bool:
        return super().exists(path) or self._disk.exists(path)

    def read(self, path: Path) -> str:
        if super().exists(path):
            return super().read(path)
        return self._disk.read(path)

    def write(self, path: Path, content: str) -> int:
        logger.info("[dry-run] would write %s", self._key(path))
        return super().write(path, content)

    def append(self, path: Path, content: str) -> int:
        logger.info("[dry-run] would append to %s", self._key(path))
        if not super().exists(path) and self._disk.exists(path):
            super().write(path, self._disk.read(path))
        return super().append(path, content)

    def list_files(self, directory: Path) -> List[Path]:
        recorded: List[Path] = super().list_files(directory)
        return sorted(set(recorded) | set(self._disk.list_files(directory)))


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class ArtifactExporter:
    """
    Renders and writes ``EntityPlan`` artifacts.

    Usage::

        exporter = ArtifactExporter(FileSystemWriter(root), renderer, prompter)
        result = exporter.export(plans)

    Args:
        writer: Where files go.
        renderer: Stub renderer.
        prompter: Asked before an existing file is replaced.
        overwrite: ``True`` replaces without asking, ``False`` never
            replaces, ``None`` asks *prompter*.
    """

    def __init__(
        self,
        writer: ArtifactWriter,
        renderer: TemplateRenderer,
        prompter: Prompter,
        *,
        overwrite: Optional[bool] = None,
    ) -> None:
        self._writer: ArtifactWriter = writer
        self._renderer: TemplateRenderer = renderer
        self._prompter: Prompter = prompter
        self._overwrite: Optional[bool] = overwrite

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def render(
        self, plans: Sequence[EntityPlan]
    ) -> List[Tuple[str, RenderedArtifact, Optional[str]]]:
        """
        Render every templated artifact of every plan.

        Returns ``(entity, artifact, content)`` triples in plan order;
        content is ``None`` for the route registration.

        Raises:
            UnfilledPlaceholderError: a stub placeholder has no value.
        """
        rendered: List[Tuple[str, RenderedArtifact, Optional[str]]] = []
        for plan in plans:
            for artifact in plan.artifacts:
                content: Optional[str] = None
                if artifact.template is not None:
                    content = self._renderer.render(
                        artifact.template, artifact.placeholder_values
                    )
                rendered.append((plan.entity, artifact, content))
        return rendered

    def export(
        self,
        plans: Sequence[EntityPlan],
        result: Optional[ExportResult] = None,
    ) -> ExportResult:
        """
        Render everything, then write plan by plan.

        Raises:
            UnfilledPlaceholderError: before anything is written.
            OSError: from the writer; *result* holds what was committed.
        """
        result = result if result is not None else ExportResult()
        rendered = self.render(plans)

        with Timer("export") as timer:
            for entity, artifact, content in rendered:
                if artifact.kind == ArtifactKind.ROUTE_REGISTRATION:
                    self._register_routes(entity, artifact, result)
                elif content is not None:
                    if artifact.kind == ArtifactKind.MIGRATION:
                        artifact = self._reuse_migration(artifact)
                    self._write_artifact(entity, artifact, content, result)

        result.elapsed_seconds += timer.elapsed
        logger.info(
            "Export finished: %d written, %d skipped in %.3fs.",
            len(result.written),
            len(result.skipped),
            timer.elapsed,
        )
        return result

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _may_overwrite(self, path: Path) -> bool:
        if self._overwrite is not None:
            return self._overwrite
        return self._prompter.confirm_overwrite(path)

    def _record(
        self,
        entity: str,
        artifact: RenderedArtifact,
        content: str,
        result: ExportResult,
    ) -> None:
        record: FileRecord = FileRecord(
            entity=entity,
            kind=artifact.kind,
            relative_path=artifact.target_path.as_posix(),
            size_bytes=len(content.encode("utf-8")),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )
        result.written.append(record)
        logger.info("  ✓ %s", record.relative_path)

    def _skip(
        self,
        entity: str,
        artifact: RenderedArtifact,
        reason: str,
        result: ExportResult,
    ) -> None:
        skipped: SkippedArtifact = SkippedArtifact(
            entity=entity,
            kind=artifact.kind,
            relative_path=artifact.target_path.as_posix(),
            reason=reason,
        )
        result.skipped.append(skipped)
        logger.info("  ⊘ %s (%s)", skipped.relative_path, reason)

    def _reuse_migration(self, artifact: RenderedArtifact) -> RenderedArtifact:
        """
        Point a migration at the project's existing migration for the same
        table, if there is one, so a rerun replaces it (subject to the
        overwrite policy) instead of adding a second ``Schema::create``.
        """
        planned = _MIGRATION_NAME_RE.match(artifact.target_path.name)
        if planned is None:
            return artifact
        for path in self._writer.list_files(artifact.target_path.parent):
            existing = _MIGRATION_NAME_RE.match(path.name)
            if existing is None or existing.group(1) != planned.group(1):
                continue
            if path.name != artifact.target_path.name:
                logger.info(
                    "Migration for %s already exists as %s.",
                    planned.group(1),
                    path.as_posix(),
                )
            return artifact.model_copy(update={"target_path": path})
        return artifact

    def _write_artifact(
        self,
        entity: str,
        artifact: RenderedArtifact,
        content: str,
        result: ExportResult,
    ) -> None:
        path: Path = artifact.target_path
        if self._writer.exists(path) and not self._may_overwrite(path):
            self._skip(entity, artifact, SKIP_OVERWRITE_DECLINED, result)
            return
        self._writer.make_directory(path.parent)
        self._writer.write(path, content)
        self._record(entity, artifact, content, result)

    def _register_routes(
        self,
        entity: str,
        artifact: RenderedArtifact,
        result: ExportResult,
    ) -> None:
        path: Path = artifact.target_path
        values: Dict[str, str] = artifact.placeholder_values
        existing: Optional[str] = (
            self._writer.read(path) if self._writer.exists(path) else None
        )

        routes: RouteFile = RouteFile.parse(existing)
        changed: bool = routes.register(
            RouteEntry(
                entity=values["entityName"],
                resource=values["resourceName"],
                controller=values["controllerClass"],
            )
        )
        content: str = routes.render()
        if not changed and content == existing:
            self._skip(entity, artifact, SKIP_ALREADY_REGISTERED, result)
            return

        self._writer.make_directory(path.parent)
        if existing and content.startswith(existing):
            self._writer.append(path, content[len(existing):])
        else:
            self._writer.write(path, content)
        self._record(entity, artifact, content, result)


__all__: List[str] = [
    "ArtifactExporter",
    "ArtifactWriter",
    "DryRunWriter",
    "ExportResult",
    "FileRecord",
    "FileSystemWriter",
    "InMemoryWriter",
    "SKIP_ALREADY_REGISTERED",
    "SKIP_OVERWRITE_DECLINED",
    "SkippedArtifact",
]
