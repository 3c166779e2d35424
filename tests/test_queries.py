"""
Tests for the relationship queries and event aggregation.
"""

from dashboard.domain import NodeData
from dashboard.store.events import aggregate_events
from dashboard.store.queries import get_node, get_peers, has_nodes, is_link_active

from conftest import event, node_report


def build(*reports, **markers):
    nodes = {report["id"]: NodeData.model_validate(report) for report in reports}
    for key, value in markers.items():
        nodes[int(key.lstrip("n"))] = value
    return nodes


class TestGetNode:
    def test_lookup_by_int_or_string(self):
        nodes = build(node_report(1))
        assert get_node(nodes, 1).id == 1
        assert get_node(nodes, "1").id == 1

    def test_unknown_is_none(self):
        assert get_node(build(node_report(1)), 99) is None

    def test_has_nodes(self):
        assert not has_nodes({})
        assert has_nodes(build(node_report(1)))
        assert has_nodes({5: None})


class TestGetPeers:
    def test_excludes_self(self):
        nodes = build(node_report(1), node_report(2), node_report(3))
        assert [peer.id for peer in get_peers(nodes, 2)] == [1, 3]

    def test_string_id_still_excludes_self(self):
        nodes = build(node_report(1), node_report(2))
        assert [peer.id for peer in get_peers(nodes, "1")] == [2]

    def test_failed_node_is_not_a_peer(self):
        nodes = build(node_report(1), node_report(2), n5=None)
        assert get_node(nodes, 5) is None
        assert [peer.id for peer in get_peers(nodes, 5)] == [1, 2]
        assert [peer.id for peer in get_peers(nodes, 1)] == [2]


class TestIsLinkActive:
    def test_blacklist_is_asymmetric(self):
        nodes = build(node_report(1, state="up", blacklist=[2]), node_report(2, state="up"))
        assert is_link_active(nodes, 1, 2) is False
        assert is_link_active(nodes, 2, 1) is True

    def test_down_endpoint_cuts_both_directions(self):
        nodes = build(node_report(1, state="up", blacklist=[2]), node_report(2, state="down"))
        assert is_link_active(nodes, 1, 2) is False
        assert is_link_active(nodes, 2, 1) is False

    def test_unknown_node_is_optimistic(self):
        nodes = build(node_report(1, state="up"))
        assert is_link_active(nodes, 99, 1) is True
        assert is_link_active(nodes, 1, 99) is True

    def test_failed_node_is_optimistic(self):
        nodes = build(node_report(1, state="up"), n2=None)
        assert is_link_active(nodes, 2, 1) is True

    def test_string_ids(self):
        nodes = build(node_report(1, state="up", blacklist=[2]), node_report(2, state="up"))
        assert is_link_active(nodes, "1", "2") is False


class TestAggregateEvents:
    def test_merges_by_time(self):
        nodes = build(
            node_report(1, events=[event(1, "2020-01-01T00:00:01Z"), event(1, "2020-01-01T00:00:03Z")]),
            node_report(2, events=[event(2, "2020-01-01T00:00:02Z")]),
        )
        ordered = [(e.node, e.time[-3:]) for e in aggregate_events(nodes)]
        assert ordered == [(1, "01Z"), (2, "02Z"), (1, "03Z")]

    def test_ties_keep_node_then_log_order(self):
        when = "2020-01-01T00:00:05Z"
        nodes = build(
            node_report(2, events=[event(2, when, "a"), event(2, when, "b")]),
            node_report(1, events=[event(1, when, "c")]),
        )
        assert [e.event for e in aggregate_events(nodes)] == ["a", "b", "c"]

    def test_skips_failed_and_empty_nodes(self):
        nodes = build(node_report(1), node_report(2, events=[event(2, "t")]), n3=None)
        assert [e.node for e in aggregate_events(nodes)] == [2]

    def test_recomputed_on_each_read(self):
        nodes = build(node_report(1, events=[event(1, "t1")]))
        assert len(aggregate_events(nodes)) == 1
        nodes[2] = NodeData.model_validate(node_report(2, events=[event(2, "t0")]))
        assert [e.node for e in aggregate_events(nodes)] == [2, 1]
