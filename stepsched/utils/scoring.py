import sys
from typing import List, Optional

from stepsched.models.constraints import ConstraintConfig
from stepsched.models.entities import UNASSIGNED, Schedule, Task

# Score of any schedule with an unassigned slot; loses every comparison.
WORST_SCORE = sys.maxsize


def evaluate(schedule: Schedule, tasks: List[Task]) -> int:
    """Makespan: the latest end time over all tasks."""
    latest_end = 0
    for task in tasks:
        start = schedule[task.id]
        if start is UNASSIGNED:
            return WORST_SCORE
        latest_end = max(latest_end, task.end(start))
    return latest_end


def select_better(best: Optional[Schedule], candidate: Optional[Schedule], tasks: List[Task]) -> Optional[Schedule]:
    """Keep `best` unless `candidate` scores strictly lower; ties keep the first found."""
    if candidate is None:
        return best
    if best is None:
        return candidate
    if evaluate(candidate, tasks) < evaluate(best, tasks):
        return candidate
    return best


def lower_bound(schedule: Schedule, tasks: List[Task], config: ConstraintConfig, heads: List[int]) -> int:
    """
    Makespan that no completion of a partial schedule can go below.

    Assigned tasks contribute their end; unassigned tasks their earliest
    possible end, from `heads` (precedence heads, or the pin of a pinned
    task) or from an assigned predecessor.
    """
    bound = 0
    for task in tasks:
        start = schedule[task.id]
        if start is UNASSIGNED:
            bound = max(bound, heads[task.id] + task.duration)
        else:
            bound = max(bound, start + task.duration)

    for p in config.precedences:
        before = schedule[p.before]
        if schedule[p.after] is UNASSIGNED and before is not UNASSIGNED:
            bound = max(bound, before + tasks[p.before].duration + tasks[p.after].duration)
    return bound
