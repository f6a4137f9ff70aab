"""Tests for the kahnsort CLI commands."""

import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from kahnsort._cli.main import app

runner = CliRunner()

GRAPH_TOML = """
nodes = ["a", "b", "c", "d"]

[edges]
a = ["b", "c"]
b = ["c", "d"]
c = ["d"]
"""

CYCLIC_TOML = """
[edges]
a = ["b"]
b = ["c"]
c = ["b"]
"""


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test from an empty directory so no pyproject.toml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def graph_file(workdir: Path) -> Path:
    path = workdir / "graph.toml"
    path.write_text(GRAPH_TOML)
    return path


@pytest.fixture
def cyclic_file(workdir: Path) -> Path:
    path = workdir / "cyclic.toml"
    path.write_text(CYCLIC_TOML)
    return path


class TestSortCommand:
    def test_prints_order(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["sort", str(graph_file)])

        assert result.exit_code == 0, result.output
        assert "a\nb\nc\nd\n" in result.stdout

    def test_flip(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["sort", str(graph_file), "--flip"])

        assert result.exit_code == 0, result.output
        assert "d\nc\nb\na\n" in result.stdout

    def test_exclude(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["sort", str(graph_file), "--exclude", "c"])

        assert result.exit_code == 0, result.output
        assert "a\nb\nd\n" in result.stdout

    def test_exclude_repeated(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["sort", str(graph_file), "-x", "b", "-x", "c"])

        assert result.exit_code == 0, result.output
        # Neither a nor d has an edge left, so the stack emits d first
        assert "d\na\n" in result.stdout

    def test_trace_and_verbose(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["--verbose", "sort", str(graph_file), "--trace"])

        assert result.exit_code == 0, result.output
        assert "a\nb\nc\nd\n" in result.stdout

    def test_export(self, graph_file: Path, workdir: Path) -> None:
        output = workdir / "out" / "order.toml"

        result = runner.invoke(app, ["sort", str(graph_file), "-x", "c", "-o", str(output)])

        assert result.exit_code == 0, result.output
        with output.open("rb") as f:
            data = tomllib.load(f)
        assert data["order"] == ["a", "b", "d"]
        assert data["meta"] == {"count": 3, "flip_edges": False, "excluded": ["c"]}

    def test_cycle_exits_with_1(self, cyclic_file: Path) -> None:
        result = runner.invoke(app, ["sort", str(cyclic_file)])

        assert result.exit_code == 1
        assert "Circular dependency detected" in result.output

    def test_missing_graph_argument(self, workdir: Path) -> None:
        result = runner.invoke(app, ["sort"])

        assert result.exit_code == 2
        assert "No graph file given" in result.output

    def test_missing_graph_file(self, workdir: Path) -> None:
        result = runner.invoke(app, ["sort", str(workdir / "missing.toml")])

        assert result.exit_code == 2

    def test_invalid_graph_document(self, workdir: Path) -> None:
        path = workdir / "bad.toml"
        path.write_text('vertices = ["a"]\n')

        result = runner.invoke(app, ["sort", str(path)])

        assert result.exit_code == 2
        assert "Invalid graph document" in result.output


class TestSortCommandConfig:
    def test_uses_configured_defaults(self, graph_file: Path, workdir: Path) -> None:
        (workdir / "pyproject.toml").write_text(
            """
[tool.kahnsort]
graph = "graph.toml"
output = "order.toml"
flip-edges = true
""",
        )

        result = runner.invoke(app, ["sort"])

        assert result.exit_code == 0, result.output
        assert "d\nc\nb\na\n" in result.stdout
        with (workdir / "order.toml").open("rb") as f:
            assert tomllib.load(f)["order"] == ["d", "c", "b", "a"]

    def test_configured_exclude_overridden_by_option(self, graph_file: Path, workdir: Path) -> None:
        (workdir / "pyproject.toml").write_text('[tool.kahnsort]\nexclude = ["b"]\n')

        result = runner.invoke(app, ["sort", str(graph_file), "-x", "c"])

        assert result.exit_code == 0, result.output
        assert "a\nb\nd\n" in result.stdout

    def test_no_flip_overrides_configured_flip(self, workdir: Path) -> None:
        (workdir / "pyproject.toml").write_text("[tool.kahnsort]\nflip-edges = true\n")
        path = workdir / "g.toml"
        path.write_text('nodes = ["a", "b"]\n\n[edges]\na = ["b"]\n')

        configured = runner.invoke(app, ["sort", str(path)])
        overridden = runner.invoke(app, ["sort", str(path), "--no-flip"])

        assert configured.exit_code == 0, configured.output
        assert "b\na\n" in configured.stdout
        assert overridden.exit_code == 0, overridden.output
        assert "a\nb\n" in overridden.stdout

    def test_no_exclude_clears_configured_exclude(self, graph_file: Path, workdir: Path) -> None:
        (workdir / "pyproject.toml").write_text('[tool.kahnsort]\nexclude = ["c"]\n')

        configured = runner.invoke(app, ["sort", str(graph_file)])
        cleared = runner.invoke(app, ["sort", str(graph_file), "--no-exclude"])

        assert configured.exit_code == 0, configured.output
        assert "a\nb\nd\n" in configured.stdout
        assert cleared.exit_code == 0, cleared.output
        assert "a\nb\nc\nd\n" in cleared.stdout

    def test_invalid_config(self, graph_file: Path, workdir: Path) -> None:
        (workdir / "pyproject.toml").write_text("[tool.kahnsort]\nflip-edges = 1\n")

        result = runner.invoke(app, ["sort", str(graph_file)])

        assert result.exit_code == 2


class TestCheckCommand:
    def test_acyclic(self, graph_file: Path) -> None:
        result = runner.invoke(app, ["check", str(graph_file)])

        assert result.exit_code == 0, result.output
        assert "Graph is acyclic" in result.output

    def test_cyclic(self, cyclic_file: Path) -> None:
        result = runner.invoke(app, ["check", str(cyclic_file)])

        assert result.exit_code == 1
        assert "Circular dependency detected" in result.output

    def test_exclude_breaks_cycle(self, cyclic_file: Path) -> None:
        result = runner.invoke(app, ["check", str(cyclic_file), "-x", "c"])

        assert result.exit_code == 0, result.output
        assert "Graph is acyclic" in result.output

    def test_configured_exclude_matches_sort(self, cyclic_file: Path, workdir: Path) -> None:
        (workdir / "pyproject.toml").write_text('[tool.kahnsort]\nexclude = ["c"]\n')

        sorted_result = runner.invoke(app, ["sort", str(cyclic_file)])
        checked = runner.invoke(app, ["check", str(cyclic_file)])
        unfiltered = runner.invoke(app, ["check", str(cyclic_file), "--no-exclude"])

        assert sorted_result.exit_code == 0, sorted_result.output
        assert checked.exit_code == 0, checked.output
        assert unfiltered.exit_code == 1
