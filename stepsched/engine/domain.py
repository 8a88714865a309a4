from typing import List, Tuple

from stepsched.models.entities import Task


def generate_domain(tasks: List[Task]) -> Tuple[int, ...]:
    """
    Candidate start times: every subset sum of the task durations.

    In an optimal packing without idle time each task starts where some subset
    of the other tasks has finished, so only these offsets are searched.
    Constraint sets that need deliberate idle time are not supported by this
    restriction.

    Complexity: O(2^n * n)
    """
    values = {0}
    for mask in range(1 << len(tasks)):
        total = 0
        for bit, task in enumerate(tasks):
            if mask & (1 << bit):
                total += task.duration
        values.add(total)
    return tuple(sorted(values))


def possible_leaves(domain: Tuple[int, ...], num_tasks: int) -> int:
    return len(domain) ** num_tasks
