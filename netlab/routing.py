"""Distance vector and link state routing over an adjacency matrix.

Costs are integers; :data:`INF` marks a missing link or an unreachable node.
"""

from __future__ import annotations

import heapq
import os
import sys
from collections.abc import Sequence

INF = 9999

Graph = list[list[int]]


def _check_square(graph: Sequence[Sequence[int]]) -> int:
    size = len(graph)
    if any(len(row) != size for row in graph):
        raise ValueError("adjacency matrix must be square")
    return size


def parse_graph(text: str) -> Graph:
    """Parse a node count followed by that many rows of integer costs.

    Raises ValueError if the count or any cost is missing or not an integer.
    """
    tokens = text.split()
    if not tokens:
        raise ValueError("missing node count")
    size = int(tokens[0])
    if size < 0:
        raise ValueError("node count must not be negative")
    costs = [int(token) for token in tokens[1 : 1 + size * size]]
    if len(costs) < size * size:
        raise ValueError(f"expected {size * size} costs, found {len(costs)}")
    return [costs[row * size : (row + 1) * size] for row in range(size)]


def read_graph(path: str | os.PathLike[str]) -> Graph:
    """Read an adjacency matrix from the file at ``path``."""
    with open(path, encoding="utf-8") as handle:
        return parse_graph(handle.read())


def distance_vector(
    graph: Sequence[Sequence[int]],
) -> tuple[Graph, list[list[int | None]]]:
    """Iterate distance vector updates until no table changes.

    Returns the cost matrix and the next-hop matrix; a next hop is None
    for a node itself and for destinations with no known route.
    """
    size = _check_square(graph)
    dist = [list(row) for row in graph]
    next_hop: list[list[int | None]] = [
        [None if i == j or graph[i][j] == INF else j for j in range(size)]
        for i in range(size)
    ]

    updated = True
    while updated:
        updated = False
        for i in range(size):
            for j in range(size):
                if i == j or graph[i][j] == INF:
                    continue
                for k in range(size):
                    if dist[j][k] == INF:
                        continue
                    new_cost = dist[i][j] + dist[j][k]
                    if new_cost < dist[i][k]:
                        dist[i][k] = new_cost
                        next_hop[i][k] = next_hop[i][j]
                        updated = True
    return dist, next_hop


def link_state(
    graph: Sequence[Sequence[int]], src: int
) -> tuple[list[int], list[int | None]]:
    """Run Dijkstra's algorithm from ``src``.

    Returns the cost to every node (INF if unreachable) and each node's
    predecessor on its shortest path (None for ``src`` and unreachable nodes).
    """
    size = _check_square(graph)
    if not 0 <= src < size:
        raise IndexError(f"source node {src} out of range")
    dist = [INF] * size
    prev: list[int | None] = [None] * size
    visited = [False] * size
    dist[src] = 0
    queue = [(0, src)]
    while queue:
        cost, u = heapq.heappop(queue)
        if visited[u] or cost != dist[u]:
            continue
        visited[u] = True
        for v, weight in enumerate(graph[u]):
            if weight == INF or visited[v]:
                continue
            new_cost = cost + weight
            if new_cost < dist[v]:
                dist[v] = new_cost
                prev[v] = u
                heapq.heappush(queue, (new_cost, v))
    return dist, prev


def next_hop_from_prev(
    src: int, dest: int, prev: Sequence[int | None]
) -> int | None:
    """Follow predecessors back from ``dest`` to the first hop out of ``src``.

    Returns None when ``dest`` has no route from ``src``.
    """
    hop = dest
    while prev[hop] != src and prev[hop] is not None:
        hop = prev[hop]
    return None if prev[hop] is None else hop


def format_dvr_table(
    node: int,
    dist: Sequence[Sequence[int]],
    next_hop: Sequence[Sequence[int | None]],
) -> str:
    """Render the distance vector routing table of ``node``."""
    lines = [f"Node {node} Routing Table:", "Dest\tCost\tNext Hop"]
    for dest, cost in enumerate(dist[node]):
        hop = next_hop[node][dest]
        lines.append(f"{dest}\t{cost}\t{'-' if hop is None else hop}")
    return "\n".join(lines) + "\n\n"


def format_lsr_table(
    src: int, dist: Sequence[int], prev: Sequence[int | None]
) -> str:
    """Render the link state routing table of ``src``."""
    lines = [f"Node {src} Routing Table:", "Dest\tCost\tNext Hop"]
    for dest, cost in enumerate(dist):
        if dest == src:
            continue
        hop = next_hop_from_prev(src, dest, prev)
        lines.append(f"{dest}\t{cost}\t{-1 if hop is None else hop}")
    return "\n".join(lines) + "\n\n"


def main(argv: Sequence[str] | None = None) -> int:
    """Read a graph file and print the DVR and LSR routing tables."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: routing_sim <input_file>", file=sys.stderr)
        return 1
    path = args[0]
    try:
        graph = read_graph(path)
    except OSError:
        print(f"Error: Could not open file {path}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: Invalid graph in {path}: {exc}", file=sys.stderr)
        return 1

    out = ["\n--- Distance Vector Routing Simulation ---\n", "--- DVR Final Tables ---\n"]
    dist, next_hop = distance_vector(graph)
    out.extend(format_dvr_table(node, dist, next_hop) for node in range(len(graph)))
    out.append("\n--- Link State Routing Simulation ---\n")
    for src in range(len(graph)):
        costs, prev = link_state(graph, src)
        out.append(format_lsr_table(src, costs, prev))
    sys.stdout.write("".join(out))
    return 0


if __name__ == "__main__":
    sys.exit(main())