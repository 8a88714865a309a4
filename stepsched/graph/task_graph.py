from collections import defaultdict, deque
from typing import Dict, List, Optional, Set, Tuple

from stepsched.models.constraints import Precedence
from stepsched.models.entities import Task


def build_conflict_graph(tasks: List[Task]) -> Dict[int, Set[int]]:
    """Edges join tasks that share a resource type and therefore may not overlap."""
    graph: Dict[int, Set[int]] = defaultdict(set)
    for i, t1 in enumerate(tasks):
        for t2 in tasks[i + 1 :]:
            if t1.resource_type == t2.resource_type:
                graph[t1.id].add(t2.id)
                graph[t2.id].add(t1.id)
    return graph


def conflict_pairs(tasks: List[Task]) -> List[Tuple[int, int]]:
    graph = build_conflict_graph(tasks)
    return [(a, b) for a in sorted(graph) for b in sorted(graph[a]) if a < b]


def topological_order(num_tasks: int, precedences: List[Precedence]) -> Optional[List[int]]:
    """
    Kahn's algorithm over the precedence graph (edge before -> after).

    Returns None when the graph contains a cycle.
    """
    successors: Dict[int, List[int]] = defaultdict(list)
    indegree = [0] * num_tasks
    for p in precedences:
        successors[p.before].append(p.after)
        indegree[p.after] += 1

    queue = deque(i for i in range(num_tasks) if indegree[i] == 0)
    order: List[int] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        for succ in successors[node]:
            indegree[succ] -= 1
            if indegree[succ] == 0:
                queue.append(succ)

    if len(order) != num_tasks:
        return None
    return order


def earliest_starts(tasks: List[Task], precedences: List[Precedence], order: List[int]) -> List[int]:
    """Longest path of predecessor durations ending at each task (its "head")."""
    predecessors: Dict[int, List[int]] = defaultdict(list)
    for p in precedences:
        predecessors[p.after].append(p.before)

    heads = [0] * len(tasks)
    for node in order:
        for pred in predecessors[node]:
            heads[node] = max(heads[node], heads[pred] + tasks[pred].duration)
    return heads
