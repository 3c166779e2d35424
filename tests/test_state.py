"""
Tests for StoreState commits and the signature ring buffer.
"""

import pytest

from dashboard.domain import ClusterInfo, NodeData, NodeStatus, Signature
from dashboard.store.signatures import SignatureBuffer
from dashboard.store.state import StoreState

from conftest import node_report


def report(node_id=1, **kwargs):
    return NodeData.model_validate(node_report(node_id, **kwargs))


class TestUpdateNode:
    def test_identical_write_is_suppressed(self):
        state = StoreState()
        changes = []
        state.subscribe(lambda key, value: changes.append((key, value)))

        assert state.update_node(1, report(1)) is True
        assert state.update_node(1, report(1)) is False
        assert changes == [("node", 1)]
        assert state.version == 1

    def test_suppressed_write_keeps_stored_object(self):
        state = StoreState()
        first = report(1)
        state.update_node(1, first)
        state.update_node("1", report(1))
        assert state.node_view()[1] is first

    def test_changed_write_replaces(self):
        state = StoreState()
        state.update_node(1, report(1, state="follower"))
        assert state.update_node(1, report(1, state="leader")) is True
        assert state.nodes[1].state == "leader"

    def test_string_and_int_keys_share_an_entry(self):
        state = StoreState()
        state.update_node("2", report(2))
        state.update_node(2, report(2, state="down"))
        assert list(state.nodes) == [2]

    def test_null_marker_is_distinct_from_unknown(self):
        state = StoreState()
        assert state.node_status(5) == NodeStatus.UNKNOWN
        state.update_node(5, None)
        assert 5 in state.nodes
        assert state.nodes[5] is None
        assert state.node_status(5) == NodeStatus.UNREACHABLE

    def test_repeated_null_marker_is_suppressed(self):
        state = StoreState()
        assert state.update_node(5, None) is True
        assert state.update_node(5, None) is False

    def test_recovery_after_failure(self):
        state = StoreState()
        state.update_node(1, None)
        assert state.update_node(1, report(1)) is True
        assert state.node_status(1) == NodeStatus.KNOWN

    def test_syncing_status(self):
        state = StoreState()
        state.mark_syncing(3)
        assert state.node_status(3) == NodeStatus.SYNCING
        state.update_node(3, report(3))
        assert state.node_status(3) == NodeStatus.KNOWN

    def test_getter_returns_a_copy(self):
        state = StoreState()
        state.update_node(1, report(1))
        snapshot = state.nodes
        snapshot[2] = None
        assert 2 not in state.nodes


class TestClusterInfo:
    def test_first_value_is_kept(self):
        state = StoreState()
        first = ClusterInfo.model_validate({"nodes": [{"id": 1}]})
        second = ClusterInfo.model_validate({"nodes": [{"id": 2}]})
        state.set_cluster_info(first)
        assert state.set_cluster_info(second) is first
        assert state.cluster_info is first


class TestConfigSlots:
    def test_slots_start_empty(self):
        state = StoreState()
        assert state.config("cluster") is None
        assert state.config("instance") is None

    def test_unknown_scope(self):
        with pytest.raises(KeyError):
            StoreState().set_config("global", "x")


class TestListeners:
    def test_unsubscribe(self):
        state = StoreState()
        changes = []
        unsubscribe = state.subscribe(lambda key, value: changes.append(key))
        state.update_node(1, report(1))
        unsubscribe()
        state.update_node(2, report(2))
        assert changes == ["node"]

    def test_failing_listener_does_not_block_commit(self):
        state = StoreState()

        def broken(key, value):
            raise RuntimeError("boom")

        state.subscribe(broken)
        state.update_node(1, report(1))
        assert state.nodes[1].id == 1


def sig(n):
    return Signature.model_validate({"signatureId": f"s-{n}"})


class TestSignatureBuffer:
    def test_newest_first(self):
        buffer = SignatureBuffer(capacity=10)
        buffer.extend(sig(n) for n in range(3))
        assert [s.signature_id for s in buffer.recent(3)] == ["s-2", "s-1", "s-0"]

    def test_bounded_to_capacity(self):
        buffer = SignatureBuffer(capacity=10)
        buffer.extend(sig(n) for n in range(25))
        assert len(buffer) == 10
        assert len(buffer.recent(10)) == 10
        assert [s.signature_id for s in buffer.recent(2)] == ["s-24", "s-23"]
        assert buffer.recent(10)[-1].signature_id == "s-15"
        assert buffer.total_received == 25

    def test_recent_returns_fewer_when_short(self):
        buffer = SignatureBuffer(capacity=10)
        buffer.append(sig(1))
        assert len(buffer.recent(5)) == 1
        assert buffer.recent(0) == []

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            SignatureBuffer(capacity=0)

    def test_state_append_notifies(self):
        state = StoreState(signature_capacity=2)
        keys = []
        state.subscribe(lambda key, value: keys.append(key))
        for n in range(3):
            state.append_signature(sig(n))
        assert keys == ["signature"] * 3
        assert [s.signature_id for s in state.signatures.recent(5)] == ["s-2", "s-1"]
