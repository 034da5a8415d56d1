"""Integration tests for the full evaluate -> reconcile -> manifest flow.

Scripts are real files on disk, evaluated by the built-in Python interpreter
and reconciled into in-process project models.

Run with: pytest tests/integration/test_full_flow.py -v
"""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from trier.config import TrierConfig
from trier.engine.generator import Generator
from trier.engine.manifest import ManifestStore
from trier.engine.reporter import CollectingReporter
from trier.lib.output.models import BuildAction
from trier.lib.project.memory import InMemoryProject, JsonProject


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> TrierConfig:
    return TrierConfig(
        log_level="INFO",
        manifest_extension=".log",
        source_extension=".cs",
        encoding="utf-8",
        interpreter="",
    )


@pytest.fixture
def reporter() -> CollectingReporter:
    return CollectingReporter()


@pytest.fixture
def generator(reporter: CollectingReporter, config: TrierConfig) -> Generator:
    return Generator(reporter=reporter, config=config)


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# 1. The gen.csx scenarios
# ---------------------------------------------------------------------------


class TestGenScenario:
    """First run, then a second run adding an embedded resource."""

    def test_two_runs(self, generator: Generator, tmp_path: Path):
        project = InMemoryProject("app")
        source = _write_script(tmp_path / "gen.csx", 'output["gen.cs"].write("class Foo{}")\n')
        gen_cs = str(tmp_path / "gen.cs")
        gen_xml = str(tmp_path / "gen.xml")

        first = generator.run(source, project)

        assert first.ok
        assert project.find_item(gen_cs).build_action is BuildAction.COMPILE
        assert ManifestStore(".log").load(source) == [gen_cs]

        _write_script(
            source,
            'output["gen.cs"].write("class Foo{}")\n'
            'xml = output["gen.xml"]\n'
            'xml.write("<foo/>")\n'
            'xml.build_action = "EmbeddedResource"\n',
        )
        before = list(project.mutations)

        second = generator.run(source, project)

        assert second.ok
        assert second.reconcile.unchanged == [gen_cs]
        assert second.reconcile.added == [gen_xml]
        assert project.find_item(gen_xml).build_action is BuildAction.EMBEDDED_RESOURCE
        new_mutations = project.mutations[len(before):]
        assert all(m[1] == gen_xml for m in new_mutations)
        assert ManifestStore(".log").load(source) == [gen_cs, gen_xml]

    def test_shrinking_output_cleans_up(self, generator: Generator, tmp_path: Path):
        project = InMemoryProject("app")
        source = _write_script(
            tmp_path / "gen.csx",
            'for name in ("a", "b"):\n'
            '    output[name + ".cs"].write("class " + name.upper() + "{}")\n',
        )
        generator.run(source, project)

        _write_script(source, 'output["a.cs"].write("class A{}")\n')
        outcome = generator.run(source, project)

        assert outcome.reconcile.removed == [str(tmp_path / "b.cs")]
        assert [i.path for i in project.list_items()] == [str(tmp_path / "a.cs")]
        assert not (tmp_path / "b.cs").exists()
        assert ManifestStore(".log").load(source) == [str(tmp_path / "a.cs")]


# ---------------------------------------------------------------------------
# 2. Failing script after a good run
# ---------------------------------------------------------------------------


class TestBrokenRunPreservesState:
    def test_diagnostic_run_changes_nothing(
        self, generator: Generator, reporter: CollectingReporter, tmp_path: Path
    ):
        project = InMemoryProject("app")
        source = _write_script(tmp_path / "gen.csx", 'output["gen.cs"].write("v1")\n')
        generator.run(source, project)
        manifest_before = (tmp_path / "gen.log").read_bytes()
        mutations_before = list(project.mutations)

        _write_script(
            source,
            'output["other.cs"].write("v2")\n'
            'context.error("schema.json not found", line=2, column=1)\n',
        )
        outcome = generator.run(source, project)

        assert not outcome.ok
        assert project.mutations == mutations_before
        assert (tmp_path / "gen.log").read_bytes() == manifest_before
        assert (tmp_path / "gen.cs").read_text(encoding="utf-8") == "v1"
        assert not (tmp_path / "other.cs").exists()
        assert [(e.message, e.line) for e in reporter.entries] == [("schema.json not found", 2)]


# ---------------------------------------------------------------------------
# 3. GenerateOnly lifecycle with a persisted project
# ---------------------------------------------------------------------------


class TestGenerateOnlyWithJsonProject:
    def test_generate_only_lifecycle(self, generator: Generator, tmp_path: Path):
        project_file = tmp_path / "app.json"
        source = _write_script(
            tmp_path / "gen.csx",
            'output["gen.cs"].write("class Foo{}")\n'
            'dump = output["debug/dump.txt"]\n'
            'dump.build_action = "GenerateOnly"\n'
            'dump.write("tokens: 42")\n',
        )
        dump = tmp_path / "debug" / "dump.txt"

        assert generator.run(source, JsonProject(project_file)).ok
        assert dump.read_text(encoding="utf-8") == "tokens: 42"
        reloaded = JsonProject(project_file)
        assert reloaded.find_item(str(dump)) is None
        assert ManifestStore(".log").load(source) == [str(tmp_path / "gen.cs"), str(dump)]

        _write_script(source, 'output["gen.cs"].write("class Foo{}")\n')
        outcome = generator.run(source, JsonProject(project_file))

        assert outcome.ok
        assert outcome.reconcile.pruned == [str(dump)]
        assert not dump.exists()


    def test_switch_to_generate_only(self, generator: Generator, tmp_path: Path):
        project_file = tmp_path / "app.json"
        source = _write_script(tmp_path / "gen.csx", 'output["a.cs"].write("class A{}")\n')
        generator.run(source, JsonProject(project_file))

        _write_script(
            source,
            'a = output["a.cs"]\n'
            'a.write("class A{}")\n'
            'a.build_action = "GenerateOnly"\n',
        )
        outcome = generator.run(source, JsonProject(project_file))

        assert outcome.ok
        assert JsonProject(project_file).list_items() == []
        assert (tmp_path / "a.cs").read_text(encoding="utf-8") == "class A{}"


# ---------------------------------------------------------------------------
# 4. Outputs that would overwrite the script or its manifest
# ---------------------------------------------------------------------------


class TestProtectedPaths:
    def test_output_over_manifest(self, generator: Generator, tmp_path: Path):
        project = InMemoryProject("app")
        source = _write_script(tmp_path / "gen.csx", 'output["gen.cs"].write("v1")\n')
        generator.run(source, project)
        manifest_before = (tmp_path / "gen.log").read_bytes()

        _write_script(
            source,
            'log = output["gen.log"]\n'
            'log.build_action = "Content"\n'
            'log.write("payload")\n',
        )
        outcome = generator.run(source, project)

        assert not outcome.ok
        assert any("manifest" in d.message for d in outcome.diagnostics)
        assert (tmp_path / "gen.log").read_bytes() == manifest_before
        assert project.find_item(str(tmp_path / "gen.log")) is None

    def test_output_over_script(self, generator: Generator, tmp_path: Path):
        body = 'output["gen.csx"].write("clobbered")\n'
        source = _write_script(tmp_path / "gen.csx", body)

        outcome = generator.run(source, InMemoryProject("app"))

        assert not outcome.ok
        assert source.read_text(encoding="utf-8") == body


# ---------------------------------------------------------------------------
# 5. Independent sources in parallel
# ---------------------------------------------------------------------------


class TestParallelSources:
    def test_different_sources_in_threads(self, config: TrierConfig, tmp_path: Path):
        project = InMemoryProject("app")
        sources = [
            _write_script(tmp_path / f"gen{i}.csx", f'output["out{i}.cs"].write("class C{i}{{}}")\n')
            for i in range(8)
        ]
        outcomes = {}

        def run(src: Path) -> None:
            outcomes[src.name] = Generator(reporter=CollectingReporter(), config=config).run(
                src, project
            )

        threads = [threading.Thread(target=run, args=(s,)) for s in sources]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(o.ok for o in outcomes.values())
        assert len(project.list_items()) == 8
        for i in range(8):
            assert ManifestStore(".log").load(tmp_path / f"gen{i}.csx") == [str(tmp_path / f"out{i}.cs")]
