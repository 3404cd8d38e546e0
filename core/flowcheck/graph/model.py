"""
Graph Model - canonical view of an editor node/edge snapshot.

The editor hands us whatever it has on the canvas: flat node dicts,
editor-style nodes with a ``data`` payload, or already-built GraphNode
objects. GraphSnapshot.from_raw() normalizes all of them into:

1. node id -> GraphNode (input order preserved)
2. forward adjacency: node id -> [Adjacency(target_id, edge_id)]
3. outgoing and incoming edge indexes: node id -> [GraphEdge]
4. findings for anything malformed (reported, never raised)

This is the only stage that tolerates partially malformed input; every
analyzer downstream can assume ids resolve.
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from flowcheck.validation.findings import Finding, FindingCode

logger = logging.getLogger(__name__)


class GraphNode(BaseModel):
    """One operation node on the canvas."""

    id: str
    kind: str = Field(default="", description="Node kind, looked up in the schema registry")
    config: dict[str, Any] = Field(default_factory=dict, description="Values set in the node form")
    label: str | None = None
    parent_id: str | None = Field(default=None, description="Owning visual group, if any")

    model_config = {"frozen": True}

    @property
    def display_name(self) -> str:
        return self.label or self.id

    def get(self, key: str, default: Any = None) -> Any:
        """Read a configuration value."""
        return self.config.get(key, default)


class GraphEdge(BaseModel):
    """A directed connection between two node handles."""

    id: str
    source: str = Field(description="Source node ID")
    target: str = Field(description="Target node ID")
    source_handle: str | None = Field(
        default=None, validation_alias=AliasChoices("source_handle", "sourceHandle")
    )
    target_handle: str | None = Field(
        default=None, validation_alias=AliasChoices("target_handle", "targetHandle")
    )

    model_config = {"frozen": True}

    @property
    def key(self) -> str:
        return f"{self.source}->{self.target}"


@dataclass(frozen=True)
class Adjacency:
    """One outgoing step in the forward adjacency map."""

    target_id: str
    edge_id: str


def _as_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str | int):
        text = str(value)
        return text or None
    return None


def _normalize_node(raw: Any) -> dict[str, Any] | None:
    """Flatten flat or editor-style node payloads into GraphNode fields."""
    if isinstance(raw, GraphNode):
        return raw.model_dump()
    if not isinstance(raw, Mapping):
        return None

    data = raw.get("data")
    data = data if isinstance(data, Mapping) else {}

    kind = data.get("nodeType") or raw.get("kind") or raw.get("node_type") or ""
    config = data.get("config", raw.get("config"))
    parent = (
        raw.get("parent_id")
        or raw.get("parentId")
        or raw.get("parentNode")
        or data.get("parentNode")
    )

    label = data.get("label") or raw.get("label")

    return {
        "id": _as_id(raw.get("id")),
        "kind": kind if isinstance(kind, str) else "",
        "config": copy.deepcopy(dict(config)) if isinstance(config, Mapping) else {},
        "label": label if isinstance(label, str) else None,
        "parent_id": _as_id(parent),
    }


def _normalize_edge(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, GraphEdge):
        return raw.model_dump()
    if not isinstance(raw, Mapping):
        return None

    source = _as_id(raw.get("source"))
    target = _as_id(raw.get("target"))
    source_handle = _as_id(raw.get("source_handle", raw.get("sourceHandle")))
    target_handle = _as_id(raw.get("target_handle", raw.get("targetHandle")))

    edge_id = _as_id(raw.get("id"))
    if edge_id is None and source is not None and target is not None:
        # Handles are part of the identity: IF true/false may both lead to one node
        tail = f"{source}:{source_handle}" if source_handle else source
        head = f"{target}:{target_handle}" if target_handle else target
        edge_id = f"{tail}->{head}"

    return {
        "id": edge_id,
        "source": source,
        "target": target,
        "source_handle": source_handle,
        "target_handle": target_handle,
    }


@dataclass
class GraphSnapshot:
    """Adapted, read-only view of one graph for one validation run."""

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)
    adjacency: dict[str, list[Adjacency]] = field(default_factory=dict)
    outgoing: dict[str, list[GraphEdge]] = field(default_factory=dict)
    incoming: dict[str, list[GraphEdge]] = field(default_factory=dict)
    findings: list[Finding] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw_nodes: Any, raw_edges: Any) -> "GraphSnapshot":
        snapshot = cls()
        snapshot._load_nodes(raw_nodes)
        snapshot._load_edges(raw_edges)
        logger.debug(
            f"Adapted graph: {len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges, "
            f"{len(snapshot.findings)} input findings"
        )
        return snapshot

    def _load_nodes(self, raw_nodes: Any) -> None:
        for index, raw in enumerate(raw_nodes):
            fields = _normalize_node(raw)
            if fields is None or fields["id"] is None:
                self.findings.append(
                    Finding.warning(
                        FindingCode.MALFORMED_NODE,
                        f"Node entry #{index} is not a valid node and was ignored",
                    )
                )
                continue

            try:
                node = GraphNode(**fields)
            except ValidationError as e:
                logger.debug(f"Rejected node entry #{index}: {e.error_count()} validation errors")
                self.findings.append(
                    Finding.warning(
                        FindingCode.MALFORMED_NODE,
                        f"Node entry #{index} is not a valid node and was ignored",
                        node_id=fields["id"],
                    )
                )
                continue

            if node.id in self.nodes:
                self.findings.append(
                    Finding.warning(
                        FindingCode.DUPLICATE_NODE_ID,
                        f"Duplicate node id '{node.id}'; only the first occurrence is validated",
                        node_id=node.id,
                    )
                )
                continue
            if not node.kind:
                self.findings.append(
                    Finding.warning(
                        FindingCode.MISSING_NODE_KIND,
                        f'Node "{node.display_name}" has no node type',
                        node_id=node.id,
                    )
                )

            self.nodes[node.id] = node
            self.adjacency[node.id] = []
            self.outgoing[node.id] = []
            self.incoming[node.id] = []

    def _load_edges(self, raw_edges: Any) -> None:
        seen: set[str] = set()
        for index, raw in enumerate(raw_edges):
            fields = _normalize_edge(raw)
            try:
                edge = GraphEdge.model_validate(fields) if fields is not None else None
            except ValidationError:
                edge = None
            if edge is None:
                self.findings.append(
                    Finding.warning(
                        FindingCode.MALFORMED_EDGE,
                        f"Edge entry #{index} is missing its source or target and was ignored",
                    )
                )
                continue

            if edge.id in seen:
                self.findings.append(
                    Finding.warning(
                        FindingCode.DUPLICATE_EDGE_ID,
                        f"Duplicate edge id '{edge.id}'; only the first occurrence is used",
                    )
                )
                continue
            seen.add(edge.id)

            dangling = False
            if edge.source not in self.nodes:
                dangling = True
                self.findings.append(
                    Finding.warning(
                        FindingCode.UNKNOWN_EDGE_SOURCE,
                        f"Edge '{edge.id}' references missing source node '{edge.source}'",
                    )
                )
            if edge.target not in self.nodes:
                dangling = True
                self.findings.append(
                    Finding.warning(
                        FindingCode.UNKNOWN_EDGE_TARGET,
                        f"Edge '{edge.id}' references missing target node '{edge.target}'",
                    )
                )
            if dangling:
                continue

            self.edges.append(edge)
            self.adjacency[edge.source].append(Adjacency(target_id=edge.target, edge_id=edge.id))
            self.outgoing[edge.source].append(edge)
            self.incoming[edge.target].append(edge)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> GraphNode | None:
        return self.nodes.get(node_id)

    def display_name(self, node_id: str) -> str:
        node = self.nodes.get(node_id)
        return node.display_name if node else node_id

    def get_outgoing_edges(self, node_id: str) -> list[GraphEdge]:
        return list(self.outgoing.get(node_id, []))

    def get_incoming_edges(self, node_id: str) -> list[GraphEdge]:
        return list(self.incoming.get(node_id, []))

    def is_empty(self) -> bool:
        return not self.nodes
