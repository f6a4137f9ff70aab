"""Topological sorting with Kahn's algorithm."""

__all__ = [
    "CycleError",
    "EdgeSource",
    "EdgeSourceError",
    "GraphDocument",
    "GraphDocumentError",
    "export_order_to_toml",
    "load_graph_document",
    "topological_sort",
]

from ._graph import CycleError, EdgeSource, EdgeSourceError, topological_sort
from ._io import GraphDocument, GraphDocumentError, export_order_to_toml, load_graph_document
