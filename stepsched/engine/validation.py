"""
Configuration pre-check.

Runs once before the search starts so that a doomed configuration fails fast
with a descriptive error instead of exhausting the exponential search space.
"""

import logging
from typing import List

from stepsched.engine.errors import InternalInvariantError, InvalidConfigurationError
from stepsched.graph.task_graph import earliest_starts, topological_order
from stepsched.models.constraints import ConstraintConfig
from stepsched.models.entities import Task

logger = logging.getLogger(__name__)


def validate_tasks(tasks: List[Task]) -> None:
    if not tasks:
        raise InvalidConfigurationError("at least one task is required")
    for position, task in enumerate(tasks):
        if task.id != position:
            raise InvalidConfigurationError(f"task id {task.id} does not match its position {position}")
        if task.duration <= 0:
            raise InternalInvariantError(f"task {task.id} has non-positive duration {task.duration}")


def validate_problem(tasks: List[Task], config: ConstraintConfig) -> List[int]:
    """
    Validate tasks and constraint rules.

    Returns:
        Earliest start of every task implied by the precedence graph

    Raises:
        InvalidConfigurationError: unknown task references, self or cyclic
            precedences, conflicting or unreachable pins
        InternalInvariantError: non-positive durations
    """
    validate_tasks(tasks)
    n = len(tasks)
    horizon = sum(t.duration for t in tasks)

    for p in config.precedences:
        if not (0 <= p.after < n and 0 <= p.before < n):
            raise InvalidConfigurationError(f"precedence {p.after} after {p.before} references an unknown task")
        if p.after == p.before:
            raise InvalidConfigurationError(f"task {p.after} cannot run strictly after itself")

    order = topological_order(n, config.precedences)
    if order is None:
        raise InvalidConfigurationError("precedence constraints contain a cycle")
    heads = earliest_starts(tasks, config.precedences, order)

    seen = {}
    for pin in config.pins:
        if not 0 <= pin.task < n:
            raise InvalidConfigurationError(f"pin references unknown task {pin.task}")
        if pin.task in seen and seen[pin.task] != pin.start:
            raise InvalidConfigurationError(
                f"task {pin.task} is pinned at both t={seen[pin.task]} and t={pin.start}"
            )
        seen[pin.task] = pin.start
        if pin.start < heads[pin.task]:
            raise InvalidConfigurationError(
                f"task {pin.task} is pinned at t={pin.start} but its predecessors finish no earlier than t={heads[pin.task]}"
            )
        if pin.start + tasks[pin.task].duration > horizon:
            raise InvalidConfigurationError(
                f"task {pin.task} pinned at t={pin.start} would end after the serial horizon t={horizon}"
            )

    logger.debug(f"Validated {n} tasks, {len(config.precedences)} precedences, {len(config.pins)} pins")
    return heads
