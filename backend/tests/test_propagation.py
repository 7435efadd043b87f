"""Tests for the propagation pass."""
from netcanvas.engine.graph import Edge, LayerGraph
from netcanvas.engine.network import Network
from netcanvas.engine.propagation import propagate, stable_topological_order


class TestEndToEnd:
    def test_mnist_scenario(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        snap = net.get_snapshot()

        conv = layer_by_id(snap, ids["conv"])
        assert conv["input_shape"] == [28, 28, 1]
        assert conv["output_shape"] == [28, 28, 32]
        assert conv["parameter_count"] == 320

        dense = layer_by_id(snap, ids["dense"])
        assert dense["input_shape"] == [28, 28, 32]
        assert dense["output_shape"] == [128]
        assert dense["parameter_count"] == 25088 * 128 + 128 == 3_211_392

        output = layer_by_id(snap, ids["output"])
        assert output["input_shape"] == [128]
        assert output["output_shape"] == [10]
        assert output["parameter_count"] == 128 * 10 + 10 == 1290
        assert not any(layer["parameters_pending"] for layer in snap["layers"])

    def test_input_shape_matches_predecessor(self, mnist_network):
        net, _ = mnist_network
        graph = net.graph
        for edge in graph.edges:
            assert graph.nodes[edge.target].input_shape == graph.nodes[edge.source].output_shape

    def test_conv_pool_chain(self, layer_by_id):
        net = Network()
        i = net.create_node("Input", {"shape": [32, 32, 3]})
        c = net.create_node("Conv2D", {"filters": 16, "padding": "valid"})
        p = net.create_node("Pool2D")
        d = net.create_node("Dense", {"units": 10})
        net.connect(i, c)
        net.connect(c, p)
        net.connect(p, d)
        snap = net.get_snapshot()
        assert layer_by_id(snap, c)["output_shape"] == [30, 30, 16]
        assert layer_by_id(snap, p)["output_shape"] == [15, 15, 16]
        assert layer_by_id(snap, d)["parameter_count"] == 15 * 15 * 16 * 10 + 10


class TestIdempotence:
    def test_second_pass_changes_nothing(self, mnist_network):
        net, _ = mnist_network
        before = net.get_snapshot()
        assert propagate(net.graph) == []
        assert net.get_snapshot() == before

    def test_scoped_pass_matches_full_pass(self, mnist_network):
        net, ids = mnist_network
        graph = net.graph
        conv = graph.nodes[ids["conv"]]
        graph.set_config(conv.id, conv.config.model_copy(update={"filters": 8}))
        changed = propagate(graph, conv.id)
        assert changed == [ids["conv"], ids["dense"]]
        assert propagate(graph) == []


class TestPending:
    def test_unconnected_layers_are_pending(self, network, layer_by_id):
        dense = network.create_node("Dense", {"units": 64})
        conv = network.create_node("Conv2D")
        snap = network.get_snapshot()
        assert layer_by_id(snap, dense)["output_shape"] == [64]
        assert layer_by_id(snap, dense)["parameters_pending"]
        assert layer_by_id(snap, dense)["parameter_count"] == 0
        assert layer_by_id(snap, conv)["output_shape"] == [None, None, 32]

    def test_pending_resolves_when_upstream_connects(self, network, layer_by_id):
        conv = network.create_node("Conv2D")
        dense = network.create_node("Dense", {"units": 4})
        network.connect(conv, dense)
        snap = network.get_snapshot()
        assert layer_by_id(snap, dense)["input_shape"] is None
        assert layer_by_id(snap, dense)["parameters_pending"]

        inp = network.create_node("Input", {"shape": [8, 8, 1]})
        network.connect(inp, conv)
        snap = network.get_snapshot()
        assert layer_by_id(snap, dense)["input_shape"] == [8, 8, 32]
        assert layer_by_id(snap, dense)["parameter_count"] == 8 * 8 * 32 * 4 + 4
        assert not layer_by_id(snap, dense)["parameters_pending"]

    def test_pool_is_never_pending(self, network, layer_by_id):
        pool = network.create_node("Pool2D")
        layer = layer_by_id(network.get_snapshot(), pool)
        assert layer["output_shape"] == [None, None, None]
        assert layer["parameter_count"] == 0
        assert not layer["parameters_pending"]

    def test_delete_predecessor_makes_downstream_pending(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        net.delete_node(ids["conv"])
        snap = net.get_snapshot()
        dense = layer_by_id(snap, ids["dense"])
        assert dense["input_shape"] is None
        assert dense["parameters_pending"]
        # Dense output does not depend on its input, so Output stays resolved
        assert layer_by_id(snap, ids["output"])["parameter_count"] == 1290


class TestManualOverride:
    def test_override_survives_upstream_edit(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        net.override_output_shape(ids["dense"], [99])
        net.update_config(ids["conv"], {"filters": 16})
        snap = net.get_snapshot()

        dense = layer_by_id(snap, ids["dense"])
        assert dense["output_shape"] == [99]
        assert dense["output_shape_manual"]
        assert dense["input_shape"] == [28, 28, 16]
        assert dense["parameter_count"] == 28 * 28 * 16 * 128 + 128

        output = layer_by_id(snap, ids["output"])
        assert output["input_shape"] == [99]
        assert output["parameter_count"] == 99 * 10 + 10

    def test_override_survives_own_config_edit(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        net.override_output_shape(ids["dense"], [99])
        net.update_config(ids["dense"], {"units": 64})
        dense = layer_by_id(net.get_snapshot(), ids["dense"])
        assert dense["output_shape"] == [99]
        assert dense["parameter_count"] == 25088 * 64 + 64

    def test_clearing_override_recomputes(self, mnist_network, layer_by_id):
        net, ids = mnist_network
        net.override_output_shape(ids["dense"], [99])
        net.override_output_shape(ids["dense"], None)
        snap = net.get_snapshot()
        assert layer_by_id(snap, ids["dense"])["output_shape"] == [128]
        assert layer_by_id(snap, ids["output"])["parameter_count"] == 1290


class TestMultiplePredecessors:
    def _diamond(self):
        net = Network()
        i = net.create_node("Input", {"shape": [20]})
        a = net.create_node("Dense", {"units": 64})
        b = net.create_node("Dense", {"units": 32})
        c = net.create_node("Dense", {"units": 8})
        net.connect(i, a)
        net.connect(i, b)
        net.connect(a, c)
        net.connect(b, c)
        return net, a, b, c

    def test_latest_incoming_edge_wins(self, layer_by_id):
        net, a, b, c = self._diamond()
        layer = layer_by_id(net.get_snapshot(), c)
        assert layer["input_shape"] == [32]
        assert layer["parameter_count"] == 32 * 8 + 8

    def test_removing_latest_edge_falls_back(self, layer_by_id):
        net, a, b, c = self._diamond()
        net.disconnect(b, c)
        assert layer_by_id(net.get_snapshot(), c)["input_shape"] == [64]

    def test_editing_either_branch_is_deterministic(self, layer_by_id):
        net, a, b, c = self._diamond()
        net.update_config(a, {"units": 16})
        assert layer_by_id(net.get_snapshot(), c)["input_shape"] == [32]
        net.update_config(b, {"units": 4})
        assert layer_by_id(net.get_snapshot(), c)["input_shape"] == [4]


class TestTermination:
    def test_cycle_is_visited_once(self):
        # Cycles cannot be created through add_edge; build one by hand.
        graph = LayerGraph()
        i = graph.add_node("Input", {"shape": [4]})
        a = graph.add_node("Dense", {"units": 3})
        b = graph.add_node("Dense", {"units": 2})
        graph.edges.extend([Edge(i, a), Edge(a, b), Edge(b, a)])

        order, leftover = stable_topological_order(graph)
        assert order == [i]
        assert leftover == [a, b]

        propagate(graph)
        assert graph.nodes[b].input_shape == (3,)
        assert graph.nodes[b].parameter_count == 3 * 2 + 2

    def test_order_follows_insertion_for_ties(self):
        graph = LayerGraph()
        late = graph.add_node("Dense")
        i = graph.add_node("Input", {"shape": [4]})
        d = graph.add_node("Dense")
        graph.add_edge(i, d)
        order, leftover = stable_topological_order(graph)
        assert order == [late, i, d]
        assert leftover == []
