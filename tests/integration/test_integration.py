"""Integration tests for cell sources, the example notebook, the CLI and the MCP tools."""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from portgraph.cli import app
from portgraph.core.exceptions import CellNotFoundError
from portgraph.core.graph import DecoratedGraph, PortGraph
from portgraph.core.graph.traversal import dfs
from portgraph.core.models import Vector2
from portgraph.mcp import server as mcp_server
from portgraph.notebook import Notebook
from portgraph.sources import DirectoryCellSource, ExampleCellSource
from portgraph.sources.examples import example_1, example_2, example_dfs, function_body

runner = CliRunner()

EXAMPLE_IDS = [
    "example_1",
    "example_2",
    "example_dfs",
    "example_flowgraph",
    "example_trefoil",
]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


@pytest.fixture
def cell_dir(temp_dir: Path) -> Path:
    """Create a directory of cell files, with one forward reference."""
    (temp_dir / "a_total.py").write_text("return cell('b_parts') + 1\n")
    (temp_dir / "b_parts.py").write_text("return 41\n")
    (temp_dir / "c_graph.py").write_text(
        """
g = graph()
g.arrow(("a", "0"), ("b", "1"))
position = decoration({"a": vec2(0, 0), "b": vec2(100, 0)})
return decorated_graph(g, {"position": position})
"""
    )
    (temp_dir / "__init__.py").write_text("")
    (temp_dir / "_scratch.py").write_text("return 0\n")
    (temp_dir / "notes.txt").write_text("not a cell")
    return temp_dir


@pytest.fixture
def examples() -> Notebook:
    """Create a notebook of the built-in examples, evaluated once."""
    notebook = Notebook.from_source(ExampleCellSource())
    notebook.evaluate_all()
    return notebook


class TestEndToEnd:
    """The ported graph scenario, built directly."""

    def test_ported_graph_scenario(self) -> None:
        g = PortGraph()
        for v in ["a", "b", "c", "d"]:
            g.node(v)
        g.arrow(("a", "0"), ("b", "1"))
        g.arrow(("b", "2"), ("c", "3"))
        g.arrow(("c", "4"), ("a", "5"))
        g.undirected("a", ("d", "6"))

        assert len(g.nodes()) == 4
        assert len(g.edges()) == 4
        assert len([e for e in g.outset("a") if e.directed]) == 1
        assert len(g.outset("a")) == 2
        assert set(g.neighbors("a")) == {"b", "c", "d"}


class TestSources:
    """Tests for the cell sources."""

    def test_directory_source(self, cell_dir: Path) -> None:
        cells = DirectoryCellSource(cell_dir).load()

        assert [c.id for c in cells] == ["a_total", "b_parts", "c_graph"]
        assert cells[1].source == "return 41\n"
        assert all(c.last_updated == 0 for c in cells)

    def test_directory_source_pattern(self, cell_dir: Path) -> None:
        cells = DirectoryCellSource(cell_dir, pattern="*.txt").load()
        assert [c.id for c in cells] == ["notes"]

    def test_directory_source_excludes(self, cell_dir: Path) -> None:
        cells = DirectoryCellSource(cell_dir, exclude_patterns=["c_*"]).load()
        assert [c.id for c in cells] == ["a_total", "b_parts"]

    def test_directory_notebook_until_fresh(self, cell_dir: Path) -> None:
        notebook = Notebook.from_source(DirectoryCellSource(cell_dir))
        passes = notebook.evaluate_until_fresh()

        assert passes == 2
        assert notebook.result("a_total") == 42
        assert notebook.decoration("c_graph", "position").get("b") == Vector2(100, 0)

    def test_example_source(self) -> None:
        cells = ExampleCellSource().load()
        assert [c.id for c in cells] == EXAMPLE_IDS

    def test_function_body_drops_signature(self) -> None:
        body = function_body(example_1)
        assert not body.startswith("def ")
        assert body.startswith("g = graph()")
        assert "return decorated_graph(g" in body


class TestExamples:
    """Tests for the example notebook."""

    def test_all_examples_evaluate(self, examples: Notebook) -> None:
        for cell_id in EXAMPLE_IDS:
            evaluated = examples.evaluated(cell_id)
            assert evaluated.ok, evaluated.error
            assert isinstance(evaluated.result, DecoratedGraph)
            assert evaluated.result.incompatible_decorations() == []
        assert examples.stale_cells() == []

    def test_example_1(self, examples: Notebook) -> None:
        result = examples.result("example_1")
        g = result.graph

        assert g.nodes() == ["a", "b", "c", "d"]
        assert g.num_edges == 4
        assert set(g.neighbors("a")) == {"b", "c", "d"}
        assert result.decoration("label").keys() == ["e0", "e1"]
        assert result.decoration("style").get("e1") == {"color": "blue"}

    def test_example_dfs_reads_example_2(self, examples: Notebook) -> None:
        evaluated = examples.evaluated("example_dfs")
        source_graph = examples.result("example_2").graph

        assert evaluated.dependencies == ("example_2",)
        style = evaluated.result.decoration("style")
        assert style.keys() == dfs(source_graph, "a")
        assert len(style) == source_graph.num_nodes - 1
        assert evaluated.result.decoration("position") is not None

    def test_example_flowgraph(self, examples: Notebook) -> None:
        g = examples.result("example_flowgraph").graph
        assert g.num_nodes == 6
        assert g.num_edges == 8
        assert [e.source.port for e in g.outset("h1")] == ["out"]

    def test_example_trefoil(self, examples: Notebook) -> None:
        result = examples.result("example_trefoil")
        assert result.graph.num_edges == 6
        assert not any(e.directed for e in result.graph.edges())
        assert result.decoration("flip").keys() == ["c3"]

    def test_examples_run_as_python(self) -> None:
        direct = example_2()
        assert direct.graph.num_edges == 14
        with pytest.raises(CellNotFoundError):
            example_dfs()

    def test_dragging_a_vertex(self, examples: Notebook) -> None:
        examples.set_decoration("example_1", "position", "a", Vector2(0, 0))
        examples.evaluate_cell("example_1")
        assert examples.decoration("example_1", "position").get("a") == Vector2(0, 0)


class TestCli:
    """Tests for the command line."""

    def test_run_examples_json(self) -> None:
        result = runner.invoke(app, ["run", "--examples", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [c["id"] for c in data["cells"]] == EXAMPLE_IDS
        assert data["stale"] == []
        assert all(c["result"]["kind"] == "decorated_graph" for c in data["cells"])

    def test_run_directory(self, cell_dir: Path) -> None:
        result = runner.invoke(app, ["run", str(cell_dir)])

        assert result.exit_code == 0, result.output
        assert "a_total" in result.output
        assert "Passes: 2" in result.output

    def test_run_single_pass_leaves_error(self, cell_dir: Path) -> None:
        result = runner.invoke(app, ["run", str(cell_dir), "--passes", "1", "--json"])

        data = json.loads(result.output)
        first = data["cells"][0]
        assert first["result"]["kind"] == "error"
        assert "a_total" in data["stale"]

    def test_run_missing_directory(self, temp_dir: Path) -> None:
        result = runner.invoke(app, ["run", str(temp_dir / "missing")])
        assert result.exit_code == 1
        assert "Not a directory" in result.output

    def test_show_json(self) -> None:
        result = runner.invoke(app, ["show", "example_1", "--examples", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["result"]["nodes"] == ["a", "b", "c", "d"]
        assert set(data["decorations"]) == {"position", "label", "style"}
        assert data["decorations"]["position"]["a"] == {"x": 150, "y": 100}

    def test_show_text(self, cell_dir: Path) -> None:
        result = runner.invoke(app, ["show", "c_graph", str(cell_dir)])

        assert result.exit_code == 0, result.output
        assert "a:0 -> b:1" in result.output
        assert "position" in result.output

    def test_show_unknown_cell(self) -> None:
        result = runner.invoke(app, ["show", "nope", "--examples"])
        assert result.exit_code == 1
        assert "No cell named" in result.output

    def test_show_unevaluated_cell(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(Notebook, "evaluate_until_fresh", lambda self, max_passes=3: 0)
        result = runner.invoke(app, ["show", "example_1", "--examples"])

        assert result.exit_code == 1
        assert "was not evaluated" in result.output

    def test_run_invalid_bundle_is_reported(self, temp_dir: Path) -> None:
        (temp_dir / "bad.py").write_text("return decorated_graph(graph(), {'k': 5})\n")
        (temp_dir / "good.py").write_text("return 1\n")
        result = runner.invoke(app, ["run", str(temp_dir), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["cells"][0]["result"]["kind"] == "error"
        assert data["cells"][1]["result"]["kind"] != "error"

    def test_show_with_merge_policy(self) -> None:
        result = runner.invoke(
            app, ["show", "example_2", "--examples", "--merge-policy", "prefer-new", "--json"]
        )
        assert result.exit_code == 0, result.output

    def test_deps_json(self) -> None:
        result = runner.invoke(app, ["deps", "--examples", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        order = data["order"]
        assert order.index("example_2") < order.index("example_dfs")
        assert data["dependencies"]["example_dfs"] == ["example_2"]

    def test_examples_list(self) -> None:
        result = runner.invoke(app, ["examples"])
        assert result.exit_code == 0
        for example_id in EXAMPLE_IDS:
            assert example_id in result.output

    def test_examples_source(self) -> None:
        result = runner.invoke(app, ["examples", "example_trefoil"])
        assert result.exit_code == 0
        assert "undirected" in result.output

    def test_examples_unknown(self) -> None:
        result = runner.invoke(app, ["examples", "nope"])
        assert result.exit_code == 1


class TestMcpTools:
    """Tests for the MCP tool handlers."""

    @pytest.fixture
    def notebook(self, temp_dir: Path) -> Notebook:
        """Create the notebook the server would load from an empty directory."""
        return mcp_server.load_notebook(temp_dir)

    def test_falls_back_to_examples(self, notebook: Notebook) -> None:
        result = mcp_server._handle_cells(notebook)
        assert [c["id"] for c in result["cells"]] == EXAMPLE_IDS
        assert all(c["stale"] for c in result["cells"])

    def test_loads_cells_from_directory(self, cell_dir: Path) -> None:
        notebook = mcp_server.load_notebook(cell_dir)
        assert notebook.cell_ids() == ["a_total", "b_parts", "c_graph"]

    def test_each_server_has_its_own_notebook(self, cell_dir: Path) -> None:
        first = Notebook.from_source(ExampleCellSource())
        second = mcp_server.load_notebook(cell_dir)
        mcp_server._handle_evaluate(first, None, 3)

        assert first.stale_cells() == []
        assert second.stale_cells() == ["a_total", "b_parts", "c_graph"]
        assert mcp_server.create_server(first) is not mcp_server.create_server(second)

    def test_evaluate_all(self, notebook: Notebook) -> None:
        result = mcp_server._handle_evaluate(notebook, None, 3)

        assert result["passes"] == 1
        assert all(r["ok"] for r in result["results"])
        json.dumps(result)

    def test_evaluate_one(self, notebook: Notebook) -> None:
        result = mcp_server._handle_evaluate(notebook, "example_dfs", 3)
        assert result["results"][0]["ok"] is False

    def test_evaluate_unknown_cell(self, notebook: Notebook) -> None:
        with pytest.raises(CellNotFoundError):
            mcp_server._handle_evaluate(notebook, "nope", 3)

    def test_graph_requires_evaluation(self, notebook: Notebook) -> None:
        assert "error" in mcp_server._handle_graph(notebook, "example_1")

    def test_graph(self, notebook: Notebook) -> None:
        mcp_server._handle_evaluate(notebook, None, 3)
        result = mcp_server._handle_graph(notebook, "example_trefoil")

        assert result["result"]["kind"] == "decorated_graph"
        assert set(result["decorations"]) == {"position", "angle", "flip"}
        json.dumps(result)

    def test_set_decoration(self, notebook: Notebook) -> None:
        mcp_server._handle_evaluate(notebook, None, 3)
        result = mcp_server._handle_set_decoration(notebook, "example_1", "position", "a", [1, 2])

        assert result["entries"]["a"] == [1, 2]
        assert result["entries"]["b"] == {"x": 300, "y": 100}

    def test_set_unknown_decoration(self, notebook: Notebook) -> None:
        mcp_server._handle_evaluate(notebook, None, 3)
        result = mcp_server._handle_set_decoration(notebook, "example_1", "nope", "a", 1)
        assert "error" in result

    def test_handle_tool_reports_errors_as_json(self, notebook: Notebook) -> None:
        [content] = mcp_server.handle_tool(notebook, "portgraph_graph", {"cell": "nope"})
        assert "does not exist" in json.loads(content.text)["error"]

        [content] = mcp_server.handle_tool(notebook, "nope", {})
        assert json.loads(content.text) == {"error": "Unknown tool: nope"}

    def test_handle_tool_evaluates(self, notebook: Notebook) -> None:
        [content] = mcp_server.handle_tool(notebook, "portgraph_evaluate", {})
        assert json.loads(content.text)["passes"] == 1
        assert notebook.stale_cells() == []
