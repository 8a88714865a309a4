from typing import List, Optional

from stepsched.engine.errors import InternalInvariantError
from stepsched.graph.task_graph import conflict_pairs
from stepsched.models.constraints import ConstraintConfig
from stepsched.models.entities import UNASSIGNED, Schedule, Task, assigned_indices


class ConstraintEvaluator:
    """
    Validates full or partial schedules against the hard constraints.

    Unassigned slots are ignored, and every check is monotonic: a partial
    schedule that fails can never pass after further tasks are assigned, so
    the search may prune it immediately.

    Owns a scratch occupancy buffer that is rewritten in place by each idle
    check; one evaluator must not be shared between concurrent searches.
    """

    def __init__(self, tasks: List[Task], config: ConstraintConfig, heads: Optional[List[int]] = None):
        self.tasks = tasks
        self.config = config
        self.heads = heads if heads is not None else [0] * len(tasks)
        self.durations = [t.duration for t in tasks]
        self.total_duration = sum(self.durations)
        self.pins = config.pin_map()
        self.exclusive_pairs = conflict_pairs(tasks) if config.exclusive_resource_types else []
        self.time_in_use = bytearray(self.total_duration + max(self.durations, default=0))

    def constraints_satisfied(self, schedule: Schedule) -> bool:
        """Run the checks cheapest first; the first failure short-circuits."""
        if len(schedule) != len(self.tasks):
            raise InternalInvariantError(
                f"schedule has {len(schedule)} slots for {len(self.tasks)} tasks"
            )
        if not self.precedences_hold(schedule):
            return False
        if not self.pins_hold(schedule):
            return False
        if self.types_overlap(schedule):
            return False
        if self.idle_time_exists(schedule):
            return False
        return True

    def strictly_after(self, first: int, second: int, schedule: Schedule) -> bool:
        """True unless both are assigned and `first` starts before `second` ends."""
        if schedule[first] is UNASSIGNED or schedule[second] is UNASSIGNED:
            return True
        return schedule[first] >= schedule[second] + self.durations[second]

    def precedences_hold(self, schedule: Schedule) -> bool:
        for p in self.config.precedences:
            start = schedule[p.after]
            if start is UNASSIGNED:
                continue
            # Predecessors finish no earlier than the head, assigned or not.
            if start < self.heads[p.after]:
                return False
            if not self.strictly_after(p.after, p.before, schedule):
                return False
        return True

    def pins_hold(self, schedule: Schedule) -> bool:
        for task_id, start in self.pins.items():
            if schedule[task_id] is not UNASSIGNED and schedule[task_id] != start:
                return False
        return True

    def types_overlap(self, schedule: Schedule) -> bool:
        """
        Pairwise half-open interval test over tasks of the same resource type.

        Complexity: O(n^2) in the number of tasks
        """
        for first, second in self.exclusive_pairs:
            a, b = schedule[first], schedule[second]
            if a is UNASSIGNED or b is UNASSIGNED:
                continue
            if max(a, b) < min(a + self.durations[first], b + self.durations[second]):
                return True
        return False

    def idle_time_exists(self, schedule: Schedule) -> bool:
        """
        Detect idle gaps below the latest occupied time unit.

        On a complete schedule any gap fails. On a partial schedule a gap is
        tolerated while the still-unassigned tasks are long enough to fill it.
        """
        buffer = self.time_in_use
        assigned = assigned_indices(schedule)
        for i in assigned:
            start = schedule[i]
            if start < 0 or start > self.total_duration:
                raise InternalInvariantError(
                    f"start t={start} of task {i} lies outside [0, {self.total_duration}]"
                )

        # Buffer is clear on entry and must be clear again on every return.
        top = 0
        for i in assigned:
            start = schedule[i]
            end = start + self.durations[i]
            buffer[start:end] = b"\x01" * self.durations[i]
            if end > top:
                top = end
        unassigned_duration = self.total_duration - sum(self.durations[i] for i in assigned)

        # Scan down from the top: every unit not in use is idle.
        idle = top - buffer.count(1, 0, top)

        buffer[0:top] = bytes(top)

        return idle > unassigned_duration
