"""
Interaction network for ChatQuant group chats

Adjacent same-session replies between different senders form a directed
count matrix, collapsed into a weighted undirected graph.
"""

import logging
from typing import Dict, List, Mapping, Sequence, Tuple

import networkx as nx

from .models import NetworkEdge, NetworkMetrics, NetworkNode

logger = logging.getLogger(__name__)


def build_interaction_graph(
    names: Sequence[str],
    reply_matrix: Mapping[Tuple[str, str], int],
) -> Tuple[nx.Graph, List[NetworkEdge]]:
    """Undirected graph over `names`; one edge per pair with any interaction."""
    graph = nx.Graph()
    graph.add_nodes_from(names)
    edges = []

    for i, source in enumerate(names):
        for target in names[i + 1:]:
            forward = reply_matrix.get((source, target), 0)
            backward = reply_matrix.get((target, source), 0)
            weight = forward + backward
            if weight <= 0:
                continue
            graph.add_edge(source, target, weight=weight)
            edges.append(NetworkEdge(
                source=source,
                target=target,
                weight=weight,
                source_to_target=forward,
                target_to_source=backward,
            ))

    return graph, edges


def compute_network_metrics(
    names: Sequence[str],
    reply_matrix: Mapping[Tuple[str, str], int],
    message_counts: Mapping[str, int],
) -> NetworkMetrics:
    """
    Degree centrality, density and the most connected participant.

    Centrality = distinct neighbours / (n - 1); density = edges / (n(n-1)/2).
    Ties for most connected go to more messages, then to list order.
    """
    names = list(names)
    graph, edges = build_interaction_graph(names, reply_matrix)

    if len(names) < 2:
        centrality: Dict[str, float] = {name: 0.0 for name in names}
        density = 0.0
    else:
        centrality = nx.degree_centrality(graph)
        density = float(nx.density(graph))

    nodes = [
        NetworkNode(
            name=name,
            total_messages=int(message_counts.get(name, 0)),
            centrality=float(centrality.get(name, 0.0)),
        )
        for name in names
    ]

    most_connected = ""
    if nodes:
        ranked = sorted(
            enumerate(nodes),
            key=lambda item: (-item[1].centrality, -item[1].total_messages, item[0]),
        )
        most_connected = ranked[0][1].name

    logger.debug(f"Network: {len(nodes)} nodes, {len(edges)} edges, density {density:.3f}")
    return NetworkMetrics(nodes=nodes, edges=edges, density=density, most_connected=most_connected)
