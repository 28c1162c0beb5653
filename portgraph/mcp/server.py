"""MCP server implementation for portgraph."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from portgraph.core.exceptions import CellNotFoundError
from portgraph.core.export import decoration_to_dict, decorations_to_dict, result_to_dict
from portgraph.notebook import Notebook
from portgraph.sources import DirectoryCellSource, ExampleCellSource

logger = logging.getLogger(__name__)

def load_notebook(directory: Path) -> Notebook:
    """Notebook of the cell files in ``directory``, or of the built-in examples."""
    cells = DirectoryCellSource(directory).load()
    if not cells:
        logger.info("No cell files in %s, using the built-in examples", directory)
        cells = ExampleCellSource().load()
    return Notebook(cells)


def create_server(notebook: Notebook) -> Server:
    """Build an MCP server whose tools operate on ``notebook``."""
    server = Server("portgraph")

    @server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return _tools()

    @server.call_tool()  # type: ignore[untyped-decorator]
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls."""
        return handle_tool(notebook, name, arguments)

    return server


def _require_cell(notebook: Notebook, cell_id: str) -> None:
    if cell_id not in notebook:
        raise CellNotFoundError(f"Cell with id {cell_id} does not exist.")


def _cell_to_dict(notebook: Notebook, cell_id: str, stale: list[str]) -> dict[str, Any]:
    evaluated = notebook.evaluated(cell_id)
    return {
        "id": cell_id,
        "evaluated": evaluated is not None,
        "ok": evaluated.ok if evaluated else None,
        "error": evaluated.error if evaluated else None,
        "viewer": evaluated.viewer if evaluated else None,
        "dependencies": list(evaluated.dependencies) if evaluated else [],
        "stale": cell_id in stale,
    }


def _tools() -> list[Tool]:
    """Tool definitions, with JSON schemas for their arguments."""
    return [
        Tool(
            name="portgraph_cells",
            description=(
                "List the notebook's cells with their evaluation status, "
                "dependencies on other cells, and whether they are stale."
            ),
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="portgraph_evaluate",
            description=(
                "Evaluate a cell, or every cell when no id is given. Evaluating every "
                "cell repeats in dependency order until no cell is stale."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "cell": {
                        "type": "string",
                        "description": "Id of the cell to evaluate (optional)",
                    },
                    "max_passes": {
                        "type": "integer",
                        "description": "Maximum passes when evaluating every cell (default: 3)",
                        "default": 3,
                    },
                },
            },
        ),
        Tool(
            name="portgraph_graph",
            description=(
                "Get the result of a cell: nodes, edges with their ports, and the "
                "decorations registered for the cell."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "cell": {
                        "type": "string",
                        "description": "Id of the cell",
                    },
                },
                "required": ["cell"],
            },
        ),
        Tool(
            name="portgraph_set_decoration",
            description=(
                "Set one entry of a cell's decoration, e.g. the position of a vertex. "
                "The cell must be evaluated and the decoration must exist."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "cell": {
                        "type": "string",
                        "description": "Id of the cell",
                    },
                    "decoration": {
                        "type": "string",
                        "description": "Decoration type, e.g. 'position'",
                    },
                    "entry": {
                        "type": "string",
                        "description": "Vertex or edge id to set",
                    },
                    "value": {
                        "description": "New value for the entry",
                    },
                },
                "required": ["cell", "decoration", "entry", "value"],
            },
        ),
    ]


def handle_tool(notebook: Notebook, name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Run one tool against ``notebook`` and return its JSON reply."""
    try:
        if name == "portgraph_cells":
            result = _handle_cells(notebook)
        elif name == "portgraph_evaluate":
            result = _handle_evaluate(
                notebook,
                arguments.get("cell"),
                arguments.get("max_passes", 3),
            )
        elif name == "portgraph_graph":
            result = _handle_graph(notebook, arguments["cell"])
        elif name == "portgraph_set_decoration":
            result = _handle_set_decoration(
                notebook,
                arguments["cell"],
                arguments["decoration"],
                arguments["entry"],
                arguments["value"],
            )
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except CellNotFoundError as e:
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_cells(notebook: Notebook) -> dict[str, Any]:
    """Handle portgraph_cells tool."""
    stale = notebook.stale_cells()
    return {"cells": [_cell_to_dict(notebook, cell_id, stale) for cell_id in notebook.cell_ids()]}


def _handle_evaluate(
    notebook: Notebook, cell_id: str | None, max_passes: int
) -> dict[str, Any]:
    """Handle portgraph_evaluate tool."""
    if cell_id is None:
        passes = notebook.evaluate_until_fresh(max_passes)
        cell_ids = notebook.cell_ids()
    else:
        _require_cell(notebook, cell_id)
        notebook.evaluate_cell(cell_id)
        passes = 1
        cell_ids = [cell_id]

    stale = notebook.stale_cells()
    return {
        "passes": passes,
        "results": [_cell_to_dict(notebook, c, stale) for c in cell_ids],
    }


def _handle_graph(notebook: Notebook, cell_id: str) -> dict[str, Any]:
    """Handle portgraph_graph tool."""
    _require_cell(notebook, cell_id)

    evaluated = notebook.evaluated(cell_id)
    if evaluated is None:
        return {"error": f"Cell {cell_id} has not been evaluated. Run portgraph_evaluate first."}

    return {
        "id": cell_id,
        "result": result_to_dict(evaluated.result),
        "decorations": decorations_to_dict(notebook.decorations(cell_id)),
    }


def _handle_set_decoration(
    notebook: Notebook, cell_id: str, decoration_type: str, entry_id: str, value: Any
) -> dict[str, Any]:
    """Handle portgraph_set_decoration tool."""
    _require_cell(notebook, cell_id)

    before = notebook.state
    notebook.set_decoration(cell_id, decoration_type, entry_id, value)
    if notebook.state is before:
        return {
            "error": (
                f"Cannot set {decoration_type} on cell {cell_id}: "
                "the cell is not evaluated or has no such decoration."
            )
        }

    deco = notebook.decoration(cell_id, decoration_type)
    return {
        "id": cell_id,
        "decoration": decoration_type,
        "entries": decoration_to_dict(deco) if deco is not None else {},
    }


async def serve(directory: Path | None = None) -> None:
    """Run the MCP server over the notebook for ``directory`` (default: cwd)."""
    server = create_server(load_notebook(directory or Path.cwd()))
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
