"""Tests for the Network command facade: config edits, observers, summary."""
import threading

import pytest

from netcanvas.engine.errors import ConfigError, StructuralError, StructuralErrorKind
from netcanvas.engine.network import Network


class TestUpdateConfig:
    def test_partial_merge(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        net.update_config(ids["dense"], {"units": 64})
        snap = net.get_snapshot()
        dense = layer_by_id(snap, ids["dense"])
        assert dense["config"]["units"] == 64
        assert dense["config"]["activation"] == "relu"
        assert layer_by_id(snap, ids["output"])["parameter_count"] == 64 * 10 + 10

    def test_rejected_atomically(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        before = net.get_snapshot()
        with pytest.raises(ConfigError, match="units"):
            net.update_config(ids["dense"], {"units": -5, "activation": "tanh"})
        assert net.get_snapshot() == before

    def test_zero_sized_kernel(self, mnist_network):
        net, ids = mnist_network
        with pytest.raises(ConfigError):
            net.update_config(ids["conv"], {"kernel_size": [0, 0]})

    def test_kind_cannot_change(self, mnist_network):
        net, ids = mnist_network
        with pytest.raises(ConfigError):
            net.update_config(ids["dense"], {"kind": "Output"})

    def test_input_shape_change_cascades(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        net.update_config(ids["input"], {"shape": [32, 32, 3]})
        snap = net.get_snapshot()
        assert layer_by_id(snap, ids["conv"])["parameter_count"] == 3 * 3 * 3 * 32 + 32
        assert layer_by_id(snap, ids["dense"])["input_shape"] == [32, 32, 32]

    def test_invalid_manual_shape(self, mnist_network):
        net, ids = mnist_network
        with pytest.raises(ConfigError):
            net.override_output_shape(ids["dense"], [-1])


class TestCommands:
    def test_connect_output_rejected(self, mnist_network):
        net, ids = mnist_network
        other = net.create_node("Dense")
        with pytest.raises(StructuralError) as exc:
            net.connect(ids["output"], other)
        assert exc.value.kind == StructuralErrorKind.OUTPUT_HAS_OUTGOING

    def test_create_input_from_dataset(self, network):
        node_id = network.create_node("Input", dataset="cifar10")
        assert network.graph.nodes[node_id].output_shape == (32, 32, 3)

    def test_explicit_shape_beats_dataset(self, network):
        node_id = network.create_node("Input", {"shape": [10]}, dataset="mnist")
        assert network.graph.nodes[node_id].output_shape == (10,)

    def test_dataset_only_for_input(self, network):
        with pytest.raises(ConfigError):
            network.create_node("Dense", dataset="mnist")

    def test_boolean_shape_rejected(self, network):
        with pytest.raises(ConfigError, match="shape"):
            network.create_node("Input", {"shape": [True, 3]})
        with pytest.raises(ConfigError):
            network.override_output_shape(network.create_node("Dense"), [True])
        assert len(network.get_snapshot()["layers"]) == 1

    def test_unknown_dataset(self, network):
        with pytest.raises(ConfigError, match="Unknown dataset"):
            network.create_node("Input", dataset="imagenet")

    def test_unknown_kind(self, network):
        with pytest.raises(KeyError):
            network.create_node("Transformer")

    def test_clear(self, mnist_network):
        net, _ = mnist_network
        net.clear()
        assert net.get_snapshot() == {"layers": [], "connections": []}
        assert net.create_node("Dense") == "dense-1"


class TestSubscriptions:
    def test_notified_once_per_command(self, network):
        seen = []
        network.subscribe(seen.append)
        i = network.create_node("Input")
        d = network.create_node("Dense")
        network.connect(i, d)
        assert len(seen) == 3
        assert seen[-1]["connections"] == [{"source": i, "target": d}]

    def test_not_notified_on_failure(self, network):
        seen = []
        d = network.create_node("Dense")
        network.subscribe(seen.append)
        with pytest.raises(StructuralError):
            network.connect(d, d)
        with pytest.raises(ConfigError):
            network.update_config(d, {"units": 0})
        assert seen == []

    def test_unsubscribe(self, network):
        seen = []
        unsubscribe = network.subscribe(seen.append)
        network.create_node("Dense")
        unsubscribe()
        network.create_node("Dense")
        assert len(seen) == 1

    def test_failing_subscriber_does_not_stall_delivery(self, network):
        seen = []

        def flaky(snapshot):
            if len(snapshot["layers"]) == 1:
                raise ValueError("boom")
            seen.append(len(snapshot["layers"]))
        network.subscribe(flaky)
        with pytest.raises(ValueError):
            network.create_node("Dense")
        network.create_node("Dense")
        assert seen == [2]

    def test_subscriber_may_issue_commands(self, network):
        created = []

        def on_change(snapshot):
            if len(snapshot["layers"]) == 1:
                created.append(network.create_node("Output"))
        network.subscribe(on_change)
        network.create_node("Input")
        assert created == ["output-1"]


class TestConcurrency:
    def test_reentrant_command_rejected(self, network):
        with network._command("outer"):
            with pytest.raises(RuntimeError, match="in progress"):
                network.create_node("Dense")

    def test_threads_serialize(self):
        net = Network()
        inp = net.create_node("Input", {"shape": [4]})
        sizes = []
        net.subscribe(lambda snap: sizes.append(len(snap["layers"]) + len(snap["connections"])))

        def worker():
            for _ in range(20):
                d = net.create_node("Dense", {"units": 2})
                net.connect(inp, d)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snap = net.get_snapshot()
        assert len(snap["layers"]) == 81
        assert len({layer["id"] for layer in snap["layers"]}) == 81
        assert all(
            layer["parameter_count"] == 4 * 2 + 2
            for layer in snap["layers"] if layer["kind"] == "Dense"
        )
        # every command is delivered once with its own post-command state
        assert sizes == list(range(2, 2 + 160))


class TestSummary:
    def test_mnist_totals(self, mnist_network):
        net, _ = mnist_network
        summary = net.summary()
        assert summary.complete
        assert summary.total_parameters == 320 + 3_211_392 + 1290
        conv_flops = 28 * 28 * (2 * 3 * 3 * 1) * 32
        dense_flops = 2 * 25088 * 128
        output_flops = 2 * 128 * 10
        assert summary.total_flops == conv_flops + dense_flops + output_flops

    def test_memory_usage(self, mnist_network):
        net, ids = mnist_network
        summary = net.summary(batch_size=2)
        conv = next(row for row in summary.layers if row.id == ids["conv"])
        assert conv.memory.param_bytes == 320 * 4
        assert conv.memory.activation_bytes == 2 * 28 * 28 * 32 * 4
        assert conv.memory.total_bytes == 320 * 4 + 2 * 28 * 28 * 32 * 4

    def test_pending_summary_incomplete(self, network):
        network.create_node("Dense")
        summary = network.summary()
        assert not summary.complete
        assert summary.to_dict()["layers"][0]["memory"]["total_bytes"] == 32 * 128 * 4
