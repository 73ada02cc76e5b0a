"""
Node-level network metrics.

Weighted graphs are built from rate matrices with networkx. Stronger
connections correspond to shorter paths for path-based measures (closeness,
betweenness), using distance = 1 / weight.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Union

import numpy as np
import networkx as nx


def build_graph(weights: np.ndarray, directed: bool = False) -> nx.Graph:
    """
    Convert a weight matrix to a networkx graph.

    Every node is present, isolated or not. Edges exist for positive
    entries and carry 'weight' and 'distance' (= 1 / weight) attributes.

    Args:
        weights: Non-negative (n, n) matrix; the diagonal is ignored.
        directed: Build a DiGraph (edge i -> j from entry (i, j)) instead of a Graph.
    """
    mat = np.array(weights, dtype=np.float64)
    np.fill_diagonal(mat, 0)
    mat[~np.isfinite(mat) | (mat < 0)] = 0

    G = nx.from_numpy_array(mat, create_using=nx.DiGraph if directed else nx.Graph)
    for _, _, data in G.edges(data=True):
        data["distance"] = 1.0 / data["weight"]
    return G


def _node_vector(G: nx.Graph, values: dict) -> np.ndarray:
    return np.array([values[node] for node in sorted(G.nodes())], dtype=np.float64)


def strength(G: nx.Graph) -> np.ndarray:
    """Weighted degree (in + out for directed graphs)."""
    return _node_vector(G, dict(G.degree(weight="weight")))


def eigenvector(G: nx.Graph) -> np.ndarray:
    """
    Weighted eigenvector centrality, scaled so the most central node scores 1.

    Computed from the leading eigenvector of the whole weight matrix, so
    disconnected graphs are accepted: nodes outside the dominant component
    score 0. Directed graphs use incoming ties. An edgeless graph scores zero
    everywhere.
    """
    if G.number_of_edges() == 0:
        return np.zeros(G.number_of_nodes())
    W = nx.to_numpy_array(G, nodelist=sorted(G.nodes()), weight="weight")
    if G.is_directed():
        eigenvalues, vectors = np.linalg.eig(W.T)
        leading = np.abs(np.real(vectors[:, np.argmax(np.real(eigenvalues))]))
    else:
        _, vectors = np.linalg.eigh(W)
        leading = np.abs(vectors[:, -1])
    return leading / leading.max()


def closeness(G: nx.Graph) -> np.ndarray:
    """Closeness centrality over inverse-weight distances. Isolated nodes score 0."""
    return _node_vector(G, nx.closeness_centrality(G, distance="distance"))


def betweenness(G: nx.Graph) -> np.ndarray:
    """Betweenness centrality over inverse-weight distances."""
    return _node_vector(G, nx.betweenness_centrality(G, weight="distance"))


class NodeMetric(str, Enum):
    """Built-in node metrics."""
    STRENGTH = "strength"
    EIGENVECTOR = "eigenvector"
    CLOSENESS = "closeness"
    BETWEENNESS = "betweenness"

    def __call__(self, G: nx.Graph) -> np.ndarray:
        return _BUILTIN_METRICS[self](G)


_BUILTIN_METRICS = {
    NodeMetric.STRENGTH: strength,
    NodeMetric.EIGENVECTOR: eigenvector,
    NodeMetric.CLOSENESS: closeness,
    NodeMetric.BETWEENNESS: betweenness,
}

MetricLike = Union[NodeMetric, str, Callable[[nx.Graph], "np.ndarray"]]


def resolve_metric(metric: MetricLike) -> Callable[[nx.Graph], np.ndarray]:
    """
    Resolve a metric argument to a callable.

    Args:
        metric: A NodeMetric, its string value ("strength", "eigenvector",
                "closeness", "betweenness"), or a callable taking a networkx
                graph and returning one value per node in node order.
    """
    if isinstance(metric, NodeMetric):
        return metric
    if isinstance(metric, str):
        try:
            return NodeMetric(metric.lower())
        except ValueError:
            choices = ", ".join(m.value for m in NodeMetric)
            raise ValueError(f"Unknown metric '{metric}'; choose one of: {choices}") from None
    if callable(metric):
        return metric
    raise TypeError(f"metric must be a NodeMetric, a metric name or a callable, got {type(metric)!r}")


def compute_metric(G: nx.Graph, metric: MetricLike = NodeMetric.STRENGTH) -> np.ndarray:
    """Compute a node-level metric, returned as a float vector ordered by node index."""
    values = resolve_metric(metric)(G)
    if isinstance(values, dict):
        values = _node_vector(G, values)
    values = np.asarray(values, dtype=np.float64).reshape(-1)
    if values.shape[0] != G.number_of_nodes():
        raise ValueError(
            f"Metric returned {values.shape[0]} values for a graph with {G.number_of_nodes()} nodes"
        )
    return values
