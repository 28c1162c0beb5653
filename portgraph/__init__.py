"""
portgraph: Notebooks of decorated port graphs.

portgraph builds graphs whose edges attach to named ports on vertices,
annotates them with decorations (positions, labels, styles), and evaluates
them in notebook cells that can reference each other's results, enabling you to:
- Build graphs with a small DSL (arrows, undirected edges, ported paths)
- Run graph algorithms such as DFS, shortest path and topological sort
- Track which cells are stale after a source change

Usage:
    from portgraph.notebook import Notebook
    from portgraph.sources import ExampleCellSource

    notebook = Notebook.from_source(ExampleCellSource())
    notebook.evaluate_all()
    notebook.result("example_dfs")
"""

__version__ = "0.1.0"
