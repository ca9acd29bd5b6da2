"""
tests/test_exporters.py
Unit tests for crudgen.exporters.

Tests cover:
- Writing every artifact of a plan through the pluggable writers
- Overwrite confirmation (declined, forced, never)
- Merging route registrations
- Dry runs leaving the project untouched
- Render failures aborting before any write
- Write failures keeping the partial result
"""

from __future__ import annotations

import hashlib
import pathlib
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from crudgen.exceptions import UnfilledPlaceholderError
from crudgen.exporters import (
    SKIP_ALREADY_REGISTERED,
    SKIP_OVERWRITE_DECLINED,
    ArtifactExporter,
    DryRunWriter,
    ExportResult,
    FileSystemWriter,
    InMemoryWriter,
)
from crudgen.models import ArtifactKind, EntityDescription, EntityPlan
from crudgen.planner import ArtifactPlanner
from crudgen.prompts import ScriptedPrompter
from crudgen.registry import EntityRegistry
from crudgen.templates import TemplateRenderer


FIXED_TIMESTAMP = datetime(2024, 5, 1, 12, 0, 0)

ROUTES = "routes/web.php"
MODEL = "app/Models/Invoice.php"
CONTROLLER = "app/Http/Controllers/InvoiceController.php"

EXPECTED_PATHS: List[str] = [
    MODEL,
    "database/migrations/2024_05_01_120000_create_invoices_table.php",
    CONTROLLER,
    "app/Http/Requests/Invoice/StoreInvoiceRequest.php",
    "app/Http/Requests/Invoice/UpdateInvoiceRequest.php",
    ROUTES,
]


@pytest.fixture()
def invoice_plans(
    planner: ArtifactPlanner, invoice_description: EntityDescription
) -> List[EntityPlan]:
    return planner.plan(invoice_description, EntityRegistry(), None, FIXED_TIMESTAMP)


@pytest.fixture()
def memory_writer() -> InMemoryWriter:
    return InMemoryWriter(
        {ROUTES: "<?php\n\nuse Illuminate\\Support\\Facades\\Route;\n"}
    )


class FailingWriter(InMemoryWriter):
    """Raises on the first write to *fail_on*."""

    def __init__(self, fail_on: str) -> None:
        super().__init__()
        self.fail_on = fail_on

    def write(self, path: Path, content: str) -> int:
        if Path(path).as_posix() == self.fail_on:
            raise PermissionError(13, "Permission denied", self.fail_on)
        return super().write(path, content)


class RecordingWriter(InMemoryWriter):
    """Remembers whether each path was written or appended to."""

    def __init__(self, files: Optional[dict] = None) -> None:
        super().__init__(files)
        self.calls: List[Tuple[str, str]] = []

    def write(self, path: Path, content: str) -> int:
        self.calls.append(("write", Path(path).as_posix()))
        return super().write(path, content)

    def append(self, path: Path, content: str) -> int:
        self.calls.append(("append", Path(path).as_posix()))
        return super().append(path, content)


# ===========================================================================
# Fresh export
# ===========================================================================


class TestFreshExport:
    def test_all_artifacts_written(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        prompter = ScriptedPrompter()
        result = ArtifactExporter(memory_writer, renderer, prompter).export(invoice_plans)

        assert result.written_paths == EXPECTED_PATHS
        assert result.skipped == []
        assert prompter.asked == []
        assert "class Invoice extends Model" in memory_writer.files[MODEL]
        assert memory_writer.files[ROUTES].endswith(
            "\n// Routes for Invoice\nRoute::resource('invoices', 'InvoiceController');\n"
        )

    def test_file_records(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        result = ArtifactExporter(memory_writer, renderer, ScriptedPrompter()).export(
            invoice_plans
        )
        model = result.written[0]
        content = memory_writer.files[MODEL]

        assert model.entity == "Invoice"
        assert model.kind is ArtifactKind.MODEL
        assert model.size_bytes == len(content.encode("utf-8"))
        assert model.line_count == content.count("\n")
        assert model.sha256 == hashlib.sha256(content.encode("utf-8")).hexdigest()
        assert result.total_bytes == sum(r.size_bytes for r in result.written)
        assert result.elapsed_seconds >= 0.0

    def test_render_only(
        self, invoice_plans: List[EntityPlan], renderer: TemplateRenderer
    ) -> None:
        writer = InMemoryWriter()
        rendered = ArtifactExporter(writer, renderer, ScriptedPrompter()).render(
            invoice_plans
        )
        assert [a.kind for _, a, _ in rendered] == list(ArtifactKind)
        assert rendered[-1][2] is None
        assert writer.files == {}

    def test_routes_file_is_created_when_missing(
        self, invoice_plans: List[EntityPlan], renderer: TemplateRenderer
    ) -> None:
        writer = InMemoryWriter()
        ArtifactExporter(writer, renderer, ScriptedPrompter()).export(invoice_plans)
        assert writer.files[ROUTES].startswith("<?php\n\nuse Illuminate")


# ===========================================================================
# Overwrites
# ===========================================================================


class TestOverwrite:
    def test_declined_overwrite_skips_only_that_file(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        memory_writer.files[MODEL] = "<?php // hand-written\n"
        prompter = ScriptedPrompter(overwrite=False)

        result = ArtifactExporter(memory_writer, renderer, prompter).export(invoice_plans)

        assert memory_writer.files[MODEL] == "<?php // hand-written\n"
        assert [(s.relative_path, s.reason) for s in result.skipped] == [
            (MODEL, SKIP_OVERWRITE_DECLINED)
        ]
        assert result.written_paths == EXPECTED_PATHS[1:]
        assert prompter.asked == [f"overwrite:{MODEL}"]

    def test_per_path_answers(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        memory_writer.files[MODEL] = "old model"
        memory_writer.files[CONTROLLER] = "old controller"
        prompter = ScriptedPrompter(overwrite={CONTROLLER: True})

        result = ArtifactExporter(memory_writer, renderer, prompter).export(invoice_plans)

        assert memory_writer.files[MODEL] == "old model"
        assert "class InvoiceController" in memory_writer.files[CONTROLLER]
        assert result.skipped_paths == [MODEL]

    def test_force_does_not_ask(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        memory_writer.files[MODEL] = "old model"
        prompter = ScriptedPrompter(overwrite=False)

        ArtifactExporter(memory_writer, renderer, prompter, overwrite=True).export(
            invoice_plans
        )

        assert "class Invoice extends Model" in memory_writer.files[MODEL]
        assert prompter.asked == []

    def test_never_overwrite_does_not_ask(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        memory_writer.files[MODEL] = "old model"
        prompter = ScriptedPrompter(overwrite=True)

        result = ArtifactExporter(
            memory_writer, renderer, prompter, overwrite=False
        ).export(invoice_plans)

        assert memory_writer.files[MODEL] == "old model"
        assert result.skipped_paths == [MODEL]
        assert prompter.asked == []


# ===========================================================================
# Existing migrations
# ===========================================================================


OLD_MIGRATION = "database/migrations/2023_01_01_000000_create_invoices_table.php"


class TestExistingMigration:
    def test_existing_migration_is_an_overwrite_question(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        memory_writer.files[OLD_MIGRATION] = "<?php // old\n"
        prompter = ScriptedPrompter(overwrite=False)

        result = ArtifactExporter(memory_writer, renderer, prompter).export(invoice_plans)

        assert result.skipped_paths == [OLD_MIGRATION]
        assert prompter.asked == [f"overwrite:{OLD_MIGRATION}"]
        assert EXPECTED_PATHS[1] not in memory_writer.files
        assert memory_writer.files[OLD_MIGRATION] == "<?php // old\n"

    def test_confirmed_overwrite_replaces_existing_migration(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        memory_writer.files[OLD_MIGRATION] = "<?php // old\n"

        result = ArtifactExporter(
            memory_writer, renderer, ScriptedPrompter(), overwrite=True
        ).export(invoice_plans)

        assert OLD_MIGRATION in result.written_paths
        assert EXPECTED_PATHS[1] not in memory_writer.files
        assert "Schema::create('invoices'" in memory_writer.files[OLD_MIGRATION]

    def test_other_tables_are_not_reused(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        other = "database/migrations/2023_01_01_000000_create_invoice_lines_table.php"
        memory_writer.files[other] = "<?php // lines\n"

        result = ArtifactExporter(memory_writer, renderer, ScriptedPrompter()).export(
            invoice_plans
        )

        assert result.written_paths == EXPECTED_PATHS
        assert memory_writer.files[other] == "<?php // lines\n"


# ===========================================================================
# Routes
# ===========================================================================


class TestRoutes:
    def test_second_run_leaves_routes_alone(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        prompter = ScriptedPrompter()
        exporter = ArtifactExporter(memory_writer, renderer, prompter, overwrite=True)
        exporter.export(invoice_plans)
        routes_after_first = memory_writer.files[ROUTES]

        second = exporter.export(invoice_plans)

        assert memory_writer.files[ROUTES] == routes_after_first
        assert routes_after_first.count("Route::resource('invoices'") == 1
        assert [(s.relative_path, s.reason) for s in second.skipped] == [
            (ROUTES, SKIP_ALREADY_REGISTERED)
        ]

    def test_routes_are_never_an_overwrite_question(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        prompter = ScriptedPrompter(overwrite=False)
        ArtifactExporter(memory_writer, renderer, prompter).export(invoice_plans)
        assert f"overwrite:{ROUTES}" not in prompter.asked
        assert "InvoiceController" in memory_writer.files[ROUTES]

    def test_several_entities_in_plan_order(
        self,
        planner: ArtifactPlanner,
        invoice_description: EntityDescription,
        memory_writer: InMemoryWriter,
        renderer: TemplateRenderer,
    ) -> None:
        customer = EntityDescription(name="Customer")
        plans = planner.plan(
            invoice_description,
            EntityRegistry(),
            lambda related: customer,
            FIXED_TIMESTAMP,
        )
        ArtifactExporter(memory_writer, renderer, ScriptedPrompter()).export(plans)

        routes = memory_writer.files[ROUTES]
        assert routes.index("// Routes for Customer") < routes.index("// Routes for Invoice")

    def test_new_registration_is_appended(
        self, invoice_plans: List[EntityPlan], renderer: TemplateRenderer
    ) -> None:
        header = "<?php\n\nuse Illuminate\\Support\\Facades\\Route;\n"
        writer = RecordingWriter({ROUTES: header})

        ArtifactExporter(writer, renderer, ScriptedPrompter()).export(invoice_plans)

        assert ("append", ROUTES) in writer.calls
        assert ("write", ROUTES) not in writer.calls
        assert writer.files[ROUTES] == (
            header
            + "\n// Routes for Invoice\n"
            + "Route::resource('invoices', 'InvoiceController');\n"
        )

    def test_changed_registration_rewrites_the_file(
        self, invoice_plans: List[EntityPlan], renderer: TemplateRenderer
    ) -> None:
        writer = RecordingWriter({
            ROUTES: "<?php\n\n// Routes for Invoice\n"
            "Route::resource('bills', 'InvoiceController');\n"
        })

        ArtifactExporter(writer, renderer, ScriptedPrompter()).export(invoice_plans)

        assert ("write", ROUTES) in writer.calls
        assert ("append", ROUTES) not in writer.calls
        assert "'bills'" not in writer.files[ROUTES]
        assert writer.files[ROUTES].count("Route::resource(") == 1


# ===========================================================================
# Dry run
# ===========================================================================


class TestDryRun:
    def test_project_is_untouched(
        self,
        invoice_plans: List[EntityPlan],
        laravel_project: pathlib.Path,
        renderer: TemplateRenderer,
    ) -> None:
        routes_before = (laravel_project / ROUTES).read_text(encoding="utf-8")
        writer = DryRunWriter(laravel_project)

        result = ArtifactExporter(writer, renderer, ScriptedPrompter()).export(
            invoice_plans
        )

        assert result.written_paths == EXPECTED_PATHS
        assert sorted(writer.files) == sorted(EXPECTED_PATHS)
        assert writer.files[ROUTES].startswith(routes_before)
        assert (laravel_project / ROUTES).read_text(encoding="utf-8") == routes_before
        assert list((laravel_project / "app" / "Models").iterdir()) == []
        assert not (laravel_project / "app" / "Http").exists()

    def test_existing_files_still_prompt(
        self,
        invoice_plans: List[EntityPlan],
        laravel_project: pathlib.Path,
        renderer: TemplateRenderer,
    ) -> None:
        (laravel_project / MODEL).write_text("<?php // mine\n", encoding="utf-8")
        prompter = ScriptedPrompter(overwrite=False)

        result = ArtifactExporter(
            DryRunWriter(laravel_project), renderer, prompter
        ).export(invoice_plans)

        assert result.skipped_paths == [MODEL]
        assert prompter.asked == [f"overwrite:{MODEL}"]


# ===========================================================================
# Failures
# ===========================================================================


class TestFailures:
    def test_unfilled_placeholder_aborts_before_writing(
        self,
        invoice_plans: List[EntityPlan],
        memory_writer: InMemoryWriter,
        tmp_path: pathlib.Path,
    ) -> None:
        (tmp_path / "request.stub").write_text(
            "<?php // {{ className }} by {{ author }}\n", encoding="utf-8"
        )
        before = dict(memory_writer.files)
        exporter = ArtifactExporter(
            memory_writer, TemplateRenderer(tmp_path), ScriptedPrompter()
        )

        with pytest.raises(UnfilledPlaceholderError) as exc_info:
            exporter.export(invoice_plans)

        assert exc_info.value.missing == ["author"]
        assert memory_writer.files == before

    def test_write_error_keeps_partial_result(
        self, invoice_plans: List[EntityPlan], renderer: TemplateRenderer
    ) -> None:
        writer = FailingWriter(fail_on=CONTROLLER)
        result = ExportResult()

        with pytest.raises(OSError):
            ArtifactExporter(writer, renderer, ScriptedPrompter()).export(
                invoice_plans, result
            )

        assert result.written_paths == EXPECTED_PATHS[:2]
        assert CONTROLLER not in writer.files


# ===========================================================================
# Real file system
# ===========================================================================


class TestFileSystemWriter:
    def test_writes_under_project_root(
        self,
        invoice_plans: List[EntityPlan],
        laravel_project: pathlib.Path,
        renderer: TemplateRenderer,
    ) -> None:
        writer = FileSystemWriter(laravel_project)
        ArtifactExporter(writer, renderer, ScriptedPrompter()).export(invoice_plans)

        for relative in EXPECTED_PATHS:
            assert (laravel_project / relative).is_file(), relative
        migration = (laravel_project / EXPECTED_PATHS[1]).read_text(encoding="utf-8")
        assert "Schema::create('invoices'" in migration
        assert "$table->foreign('customer_id')" in migration

    def test_list_files(self, tmp_path: pathlib.Path) -> None:
        writer = FileSystemWriter(tmp_path, atomic_writes=False)
        writer.write(Path("db/b.php"), "b")
        writer.write(Path("db/a.php"), "a")
        writer.make_directory(Path("db/nested"))

        assert writer.list_files(Path("db")) == [Path("db/a.php"), Path("db/b.php")]
        assert writer.list_files(Path("missing")) == []

    def test_append_creates_then_extends(self, tmp_path: pathlib.Path) -> None:
        writer = FileSystemWriter(tmp_path)
        assert writer.append(Path("routes/api.php"), "<?php\n") == 6
        writer.append(Path("routes/api.php"), "// more\n")

        assert writer.read(Path("routes/api.php")) == "<?php\n// more\n"

    def test_dry_run_lists_disk_and_recorded_files(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "db").mkdir()
        (tmp_path / "db" / "a.php").write_text("a", encoding="utf-8")
        writer = DryRunWriter(tmp_path)
        writer.write(Path("db/b.php"), "b")

        assert writer.list_files(Path("db")) == [Path("db/a.php"), Path("db/b.php")]
        assert not (tmp_path / "db" / "b.php").exists()

    def test_dry_run_append_starts_from_disk(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "web.php").write_text("<?php\n", encoding="utf-8")
        writer = DryRunWriter(tmp_path)

        writer.append(Path("web.php"), "// added\n")

        assert writer.files["web.php"] == "<?php\n// added\n"
        assert (tmp_path / "web.php").read_text(encoding="utf-8") == "<?php\n"
