"""Shared test fixtures for NetCanvas backend tests."""
import sys
from pathlib import Path

import pytest

# Ensure netcanvas package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from netcanvas.engine.network import Network


@pytest.fixture(scope="session", autouse=True)
def register_layers():
    """Discover and register all layer kinds once per test session."""
    from netcanvas.nodes.registry import LayerRegistry
    LayerRegistry.discover("netcanvas.nodes")


@pytest.fixture
def network():
    return Network()


@pytest.fixture
def mnist_network():
    """Input(28x28x1) -> Conv2D(32, 3x3, same) -> Dense(128) -> Output(10).

    Returns (network, ids) where ids maps role -> layer id.
    """
    net = Network()
    ids = {
        "input": net.create_node("Input", {"shape": [28, 28, 1]}),
        "conv": net.create_node("Conv2D", {
            "filters": 32, "kernel_size": [3, 3], "strides": [1, 1], "padding": "same",
        }),
        "dense": net.create_node("Dense", {"units": 128}),
        "output": net.create_node("Output", {"units": 10}),
    }
    net.connect(ids["input"], ids["conv"])
    net.connect(ids["conv"], ids["dense"])
    net.connect(ids["dense"], ids["output"])
    return net, ids


@pytest.fixture
def layer_by_id():
    """Look up a layer entry in a snapshot by id."""
    def lookup(snapshot, layer_id):
        return next(layer for layer in snapshot["layers"] if layer["id"] == layer_id)
    return lookup
