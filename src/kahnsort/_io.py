import logging
import tomllib
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Self

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ._graph import topological_sort

logger = logging.getLogger(__name__)


class GraphDocumentError(Exception):
    """A graph document could not be read or failed validation."""


class GraphDocument(BaseModel):
    """Nodes and outgoing edges of a dependency graph, as stored in TOML.

    Example:
        nodes = ["a", "b", "c", "d"]

        [edges]
        a = ["b", "c"]
        b = ["c", "d"]
        c = ["d"]

    When ``nodes`` is omitted, the node order is derived from ``edges``.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    nodes: list[str] | None = None
    edges: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_edge_sources(self) -> Self:
        """Reject edge lists declared for nodes missing from an explicit node list."""
        if self.nodes is not None:
            listed = set(self.nodes)
            unknown = [name for name in self.edges if name not in listed]
            if unknown:
                msg = f"Edges declared for nodes not listed in 'nodes': {', '.join(unknown)}"
                raise ValueError(msg)
        return self

    def node_order(self) -> list[str]:
        """Return the nodes in the order used for tie-breaking.

        Edge keys come first, then nodes that only appear as edge targets,
        each at its first appearance.
        """
        if self.nodes is not None:
            return list(self.nodes)

        order = dict.fromkeys(self.edges)
        for targets in self.edges.values():
            for target in targets:
                order.setdefault(target)
        return list(order)

    def sort(
        self,
        *,
        flip_edges: bool = False,
        on_emit: Callable[[str], object] | None = None,
        exclude: Callable[[str], object] | None = None,
    ) -> list[str]:
        """Sort the document's nodes. See ``topological_sort``."""
        return topological_sort(
            self.node_order(),
            self.edges,
            flip_edges=flip_edges,
            on_emit=on_emit,
            exclude=exclude,
        )


def load_graph_document(input_path: Path | str) -> GraphDocument:
    """Load and validate a graph document from a TOML file.

    Args:
        input_path: Path to the TOML file.

    Returns:
        The validated GraphDocument.

    Raises:
        GraphDocumentError: If the file is not valid TOML or does not describe a graph.

    """
    input_path = Path(input_path)

    with input_path.open("rb") as f:
        try:
            toml_contents = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {input_path}: {e}"
            raise GraphDocumentError(msg) from e

    try:
        document = GraphDocument.model_validate(toml_contents)
    except ValidationError as e:
        msg = f"Invalid graph document {input_path}:\n{e}"
        raise GraphDocumentError(msg) from e

    logger.debug(f"Loaded graph with {len(document.node_order())} nodes from {input_path}")
    return document


def export_order_to_toml(
    order: Sequence[str],
    output_path: Path | str,
    *,
    flip_edges: bool = False,
    excluded: Iterable[str] = (),
) -> None:
    """Write a computed order to a TOML file.

    Args:
        order: The sorted nodes.
        output_path: Path to the output TOML file.
        flip_edges: Whether the order was computed with flipped edges.
        excluded: Nodes that were left out of the sort.

    """
    toml_data = {
        "order": list(order),
        "meta": {
            "count": len(order),
            "flip_edges": flip_edges,
            "excluded": sorted(excluded),
        },
    }

    output_path = Path(output_path)
    with output_path.open("wb") as f:
        tomli_w.dump(toml_data, f)

    logger.debug(f"Exported order to {output_path}")
