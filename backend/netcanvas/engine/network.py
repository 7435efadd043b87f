"""Network: the single owner of a layer graph and the commands that edit it.

Every mutating command runs to completion, including its propagation pass,
before returning. Subscribers are notified once per completed command with
the snapshot taken as it completed, in command order, after the command's
lock has been released.
"""
import threading
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable

from ..log import get_logger
from ..nodes.base import LayerKind, Shape
from ..nodes.registry import LayerRegistry
from .datasets import get_dataset
from .errors import ConfigError, StructuralError
from .graph import LayerGraph
from .propagation import propagate
from .summary import NetworkSummary, summarize
from .validator import ValidationReport, validate_network

logger = get_logger(__name__)

Snapshot = dict[str, list[dict[str, Any]]]
Subscriber = Callable[[Snapshot], None]


class Network:
    def __init__(self, graph: LayerGraph | None = None):
        self._graph = graph if graph is not None else LayerGraph()
        self._lock = threading.RLock()
        self._busy = False
        self._subscribers: list[Subscriber] = []
        # snapshots of completed commands, in completion order
        self._outbox: deque[Snapshot] = deque()
        self._delivering = False
        if self._graph.nodes:
            propagate(self._graph)

    @property
    def graph(self) -> LayerGraph:
        return self._graph

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _notify(self) -> None:
        """Deliver queued snapshots in command order, from one thread at a time."""
        with self._lock:
            if self._delivering:
                return
            self._delivering = True
        try:
            while True:
                with self._lock:
                    if not self._outbox:
                        self._delivering = False
                        return
                    snapshot = self._outbox.popleft()
                for callback in list(self._subscribers):
                    callback(snapshot)
        except BaseException:
            with self._lock:
                self._delivering = False
            raise

    @contextmanager
    def _command(self, name: str):
        with self._lock:
            if self._busy:
                raise RuntimeError(f"Cannot run '{name}' while another command is in progress")
            self._busy = True
            try:
                yield
                self._outbox.append(self._graph.snapshot())
            finally:
                self._busy = False
        self._notify()

    # -- commands ----------------------------------------------------------

    def create_node(self, kind: LayerKind | str, initial_config: dict[str, Any] | None = None,
                    dataset: str | None = None) -> str:
        config = dict(initial_config or {})
        if dataset is not None:
            if LayerRegistry.get(kind).KIND != LayerKind.INPUT:
                raise ConfigError([f"Only Input layers take a dataset, not {kind}"])
            try:
                config.setdefault("shape", get_dataset(dataset).input_shape)
            except KeyError as e:
                raise ConfigError([str(e.args[0])]) from None

        with self._command("create_node"):
            node_id = self._graph.add_node(kind, config)
            propagate(self._graph, node_id)
        logger.info("Created layer %s", node_id)
        return node_id

    def delete_node(self, node_id: str) -> None:
        with self._command("delete_node"):
            successors = self._graph.remove_node(node_id)
            propagate(self._graph, successors)
        logger.info("Deleted layer %s (%d downstream refreshed)", node_id, len(successors))

    def connect(self, source_id: str, target_id: str) -> None:
        """Add ``source -> target``; raises StructuralError on rejection."""
        with self._command("connect"):
            try:
                self._graph.add_edge(source_id, target_id)
            except StructuralError as e:
                logger.warning("Rejected connection %s → %s: %s", source_id, target_id, e)
                raise
            propagate(self._graph, source_id)
        logger.info("Connected %s → %s", source_id, target_id)

    def disconnect(self, source_id: str, target_id: str) -> None:
        with self._command("disconnect"):
            self._graph.remove_edge(source_id, target_id)
            propagate(self._graph, target_id)
        logger.info("Disconnected %s → %s", source_id, target_id)

    def update_config(self, node_id: str, partial_config: dict[str, Any]) -> None:
        """Merge ``partial_config`` into the layer's config and propagate.

        Raises ConfigError if any field leaves its valid domain; the prior
        config is retained.
        """
        with self._command("update_config"):
            node = self._graph.get(node_id)
            layer_cls = LayerRegistry.get(node.kind)
            config = layer_cls.make_config(partial_config, base=node.config)
            self._graph.set_config(node_id, config)
            propagate(self._graph, node_id)
        logger.info("Updated config of %s: %s", node_id, sorted(partial_config))

    def override_output_shape(self, node_id: str, shape: Shape | None) -> None:
        """Pin a layer's output shape (or unpin it with None) and propagate."""
        with self._command("override_output_shape"):
            self._graph.set_output_shape(node_id, shape)
            propagate(self._graph, node_id)
        logger.info("Output shape of %s %s", node_id,
                    f"pinned to {list(shape)}" if shape is not None else "unpinned")

    def clear(self) -> None:
        with self._command("clear"):
            self._graph.clear()
        logger.info("Cleared network")

    # -- queries -----------------------------------------------------------

    def get_snapshot(self) -> Snapshot:
        with self._lock:
            return self._graph.snapshot()

    def validate(self) -> ValidationReport:
        with self._lock:
            return validate_network(self._graph)

    def summary(self, batch_size: int | None = None) -> NetworkSummary:
        with self._lock:
            return summarize(self._graph, batch_size=batch_size)
