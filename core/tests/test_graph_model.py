"""Tests for GraphSnapshot.from_raw: node/edge normalization and input findings."""

from flowcheck.graph.model import Adjacency, GraphEdge, GraphNode, GraphSnapshot
from flowcheck.validation.findings import FindingCode


def _codes(snapshot: GraphSnapshot) -> list[str]:
    return [str(f.code) for f in snapshot.findings]


class TestNodeNormalization:
    def test_flat_nodes(self):
        snapshot = GraphSnapshot.from_raw(
            [{"id": "a", "kind": "set", "config": {"values": "{}"}, "label": "Set A"}], []
        )
        node = snapshot.get_node("a")
        assert node is not None
        assert node.kind == "set"
        assert node.get("values") == "{}"
        assert node.display_name == "Set A"
        assert snapshot.findings == []

    def test_editor_style_nodes(self):
        raw = {
            "id": "n1",
            "type": "custom",
            "parentNode": "group-1",
            "data": {"nodeType": "http_request", "label": "Fetch", "config": {"url": "x"}},
        }
        snapshot = GraphSnapshot.from_raw([raw], [])
        node = snapshot.nodes["n1"]
        assert node.kind == "http_request"
        assert node.label == "Fetch"
        assert node.parent_id == "group-1"
        assert node.get("url") == "x"

    def test_graph_node_instances_are_accepted(self):
        snapshot = GraphSnapshot.from_raw([GraphNode(id="a", kind="set")], [])
        assert list(snapshot.nodes) == ["a"]

    def test_config_is_copied(self):
        config = {"headers": {"Accept": "json"}}
        snapshot = GraphSnapshot.from_raw([{"id": "a", "kind": "set", "config": config}], [])
        config["headers"]["Accept"] = "xml"
        assert snapshot.nodes["a"].get("headers") == {"Accept": "json"}

    def test_display_name_falls_back_to_id(self):
        snapshot = GraphSnapshot.from_raw([{"id": "a", "kind": "set"}], [])
        assert snapshot.display_name("a") == "a"
        assert snapshot.display_name("missing") == "missing"

    def test_input_order_preserved(self):
        raw = [{"id": i, "kind": "set"} for i in ("c", "a", "b")]
        assert list(GraphSnapshot.from_raw(raw, []).nodes) == ["c", "a", "b"]


class TestMalformedNodes:
    def test_non_mapping_node_is_reported(self):
        snapshot = GraphSnapshot.from_raw(["oops", {"id": "a", "kind": "set"}], [])
        assert _codes(snapshot) == ["MALFORMED_NODE"]
        assert list(snapshot.nodes) == ["a"]

    def test_node_without_id_is_reported(self):
        snapshot = GraphSnapshot.from_raw([{"kind": "set"}], [])
        assert _codes(snapshot) == ["MALFORMED_NODE"]
        assert snapshot.is_empty()

    def test_duplicate_node_keeps_first(self):
        snapshot = GraphSnapshot.from_raw(
            [{"id": "a", "kind": "set"}, {"id": "a", "kind": "code"}], []
        )
        assert _codes(snapshot) == ["DUPLICATE_NODE_ID"]
        assert snapshot.nodes["a"].kind == "set"

    def test_unusable_config_is_reported(self):
        snapshot = GraphSnapshot.from_raw(
            [{"id": "a", "kind": "set", "config": {1: "x"}}, {"id": "b", "kind": "set"}], []
        )
        assert _codes(snapshot) == ["MALFORMED_NODE"]
        assert list(snapshot.nodes) == ["b"]

    def test_missing_kind_is_reported_but_kept(self):
        snapshot = GraphSnapshot.from_raw([{"id": "a"}], [])
        assert _codes(snapshot) == ["MISSING_NODE_KIND"]
        assert "a" in snapshot.nodes


class TestEdges:
    def _nodes(self):
        return [{"id": "a", "kind": "set"}, {"id": "b", "kind": "set"}]

    def test_adjacency_and_incoming(self):
        snapshot = GraphSnapshot.from_raw(
            self._nodes(), [{"id": "e1", "source": "a", "target": "b", "sourceHandle": "output-0"}]
        )
        assert snapshot.adjacency["a"] == [Adjacency(target_id="b", edge_id="e1")]
        assert snapshot.adjacency["b"] == []
        assert [e.id for e in snapshot.get_incoming_edges("b")] == ["e1"]
        assert snapshot.get_outgoing_edges("a")[0].source_handle == "output-0"

    def test_edge_id_defaults_to_key(self):
        snapshot = GraphSnapshot.from_raw(self._nodes(), [{"source": "a", "target": "b"}])
        assert snapshot.edges[0].id == "a->b"
        assert snapshot.edges[0].key == "a->b"

    def test_edge_without_target_is_malformed(self):
        snapshot = GraphSnapshot.from_raw(self._nodes(), [{"id": "e1", "source": "a"}, 42])
        assert _codes(snapshot) == ["MALFORMED_EDGE", "MALFORMED_EDGE"]
        assert snapshot.edges == []

    def test_id_less_edges_on_different_handles_are_distinct(self):
        edges = [
            {"source": "a", "target": "b", "sourceHandle": "true"},
            {"source": "a", "target": "b", "sourceHandle": "false"},
        ]
        snapshot = GraphSnapshot.from_raw(self._nodes(), edges)
        assert snapshot.findings == []
        assert [e.id for e in snapshot.edges] == ["a:true->b", "a:false->b"]
        assert [e.source_handle for e in snapshot.get_outgoing_edges("a")] == ["true", "false"]

    def test_duplicate_edge_id(self):
        edges = [
            {"id": "e1", "source": "a", "target": "b"},
            {"id": "e1", "source": "b", "target": "a"},
        ]
        snapshot = GraphSnapshot.from_raw(self._nodes(), edges)
        assert _codes(snapshot) == ["DUPLICATE_EDGE_ID"]
        assert len(snapshot.edges) == 1

    def test_dangling_edges_are_excluded(self):
        edges = [
            {"id": "e1", "source": "ghost", "target": "b"},
            {"id": "e2", "source": "a", "target": "nowhere"},
        ]
        snapshot = GraphSnapshot.from_raw(self._nodes(), edges)
        assert _codes(snapshot) == ["UNKNOWN_EDGE_SOURCE", "UNKNOWN_EDGE_TARGET"]
        assert snapshot.edges == []
        assert snapshot.adjacency["a"] == []

    def test_graph_edge_accepts_camel_case(self):
        edge = GraphEdge.model_validate(
            {"id": "e", "source": "a", "target": "b", "targetHandle": "input-1"}
        )
        assert edge.target_handle == "input-1"

    def test_findings_are_codes_not_exceptions(self):
        snapshot = GraphSnapshot.from_raw([None, {"id": ""}], [None, {"id": "e"}])
        assert FindingCode.MALFORMED_NODE in [f.code for f in snapshot.findings]
        assert snapshot.is_empty()
