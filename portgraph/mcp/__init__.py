"""
MCP server for portgraph.

Exposes a notebook of decorated port graphs to LLMs via the Model Context
Protocol. serve() seeds one notebook from the cell files in the working
directory, or from the built-in examples when there are none, and hands it
to the server built by create_server().

Tools:
    - portgraph_cells: List cells with their evaluation status
    - portgraph_evaluate: Evaluate one cell, or all of them until fresh
    - portgraph_graph: Get a cell's graph and registered decorations
    - portgraph_set_decoration: Set one decoration entry, as a viewer would

Usage:
    Install: pip install portgraph
    Run: portgraph-mcp
"""

import asyncio

from portgraph.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    asyncio.run(_serve())


__all__ = ["serve"]
