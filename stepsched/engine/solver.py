"""
Optimizing Backtracking Search for Makespan Scheduling

Assigns every task a start time from the subset-sum domain so that the
makespan is minimal, subject to precedence, fixed pins, per-type resource
exclusivity and the no-idle-time rule.

Time Complexity: O(D^T) worst case where:
    D = domain size (distinct subset sums of the durations)
    T = number of tasks

Only practical for small task sets; the search is exhaustive, not anytime.

Key Techniques:
- Stable left-to-right variable ordering
- Ascending value ordering (small start times first)
- Monotonic constraint checks on partial schedules (pruning)
- Branch-and-bound: the best schedule so far is an accumulator threaded
  through the recursion and subtrees that cannot beat it are skipped
- Deadline / cancellation checked at the top of every recursive call
"""

import logging
import threading
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from stepsched.config.settings import get_settings
from stepsched.engine.constraint_evaluator import ConstraintEvaluator
from stepsched.engine.domain import generate_domain, possible_leaves
from stepsched.engine.errors import InfeasibleScheduleError, InternalInvariantError
from stepsched.engine.validation import validate_problem
from stepsched.models.constraints import ConstraintConfig
from stepsched.models.entities import UNASSIGNED, Schedule, Task, empty_schedule, is_complete
from stepsched.utils.scoring import WORST_SCORE, evaluate, lower_bound, select_better

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass
class SolverContext:
    """Everything one search invocation owns. Never shared between searches."""

    tasks: List[Task]
    config: ConstraintConfig
    domain: Tuple[int, ...]
    heads: List[int]
    evaluator: ConstraintEvaluator
    evaluations: int = 0
    deadline: Optional[float] = None  # epoch seconds
    cancel_event: Optional[threading.Event] = None
    timed_out: bool = False

    def should_stop(self) -> bool:
        if self.timed_out:
            return True
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.timed_out = True
        elif self.deadline is not None and time.time() >= self.deadline:
            self.timed_out = True
        return self.timed_out


@dataclass(frozen=True)
class SolveResult:
    schedule: Optional[Schedule]
    makespan: Optional[int]
    evaluations: int
    domain_size: int
    possible_leaves: int
    elapsed_seconds: float
    timed_out: bool = False

    @property
    def feasible(self) -> bool:
        return self.schedule is not None

    def raise_for_infeasible(self) -> Schedule:
        if self.schedule is None:
            raise InfeasibleScheduleError("No feasible schedule found")
        return self.schedule


def build_context(
    tasks: List[Task],
    config: ConstraintConfig,
    deadline: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> SolverContext:
    """Validate the problem and derive the shared, read-only search inputs."""
    heads = validate_problem(tasks, config)
    domain = generate_domain(tasks)

    horizon = sum(t.duration for t in tasks)
    if domain[0] != 0 or domain[-1] != horizon:
        raise InternalInvariantError(f"domain must span [0, {horizon}], got [{domain[0]}, {domain[-1]}]")

    pins = config.pin_map()
    for task_id, start in pins.items():
        if start not in domain:
            logger.warning(f"Task {task_id} is pinned at t={start}, which is not a subset sum of durations")

    # Pinned tasks can end no earlier than pin + duration.
    bound_heads = [pins.get(i, heads[i]) for i in range(len(tasks))]
    evaluator = ConstraintEvaluator(tasks, config, heads)
    return SolverContext(
        tasks=tasks,
        config=config,
        domain=domain,
        heads=bound_heads,
        evaluator=evaluator,
        deadline=deadline,
        cancel_event=cancel_event,
    )


def next_unassigned(schedule: Schedule) -> int:
    for i, start in enumerate(schedule):
        if start is UNASSIGNED:
            return i
    raise InternalInvariantError("no unassigned task left")


def backtrack(ctx: SolverContext, schedule: Schedule, best: Optional[Schedule]) -> Optional[Schedule]:
    """
    Depth-first search below `schedule`.

    Args:
        ctx: Search context (domain, evaluator, counters)
        schedule: Partial schedule that already satisfies the constraints
        best: Best complete schedule found so far, or None

    Returns:
        The better of `best` and the best complete valid schedule in this
        subtree; ties keep the earlier one. None if neither exists.
    """
    if ctx.should_stop():
        return best

    if is_complete(schedule):
        ctx.evaluations += 1
        if not ctx.evaluator.constraints_satisfied(schedule):
            return best
        improved = select_better(best, schedule, ctx.tasks)
        if improved is schedule:
            logger.debug(f"New incumbent with makespan {evaluate(schedule, ctx.tasks)}: {schedule}")
        return improved

    var = next_unassigned(schedule)
    best_score = WORST_SCORE if best is None else evaluate(best, ctx.tasks)

    for value in ctx.domain:
        candidate = list(schedule)
        candidate[var] = value

        # Domain is ascending, so the bound only grows from here on.
        if lower_bound(candidate, ctx.tasks, ctx.config, ctx.heads) >= best_score:
            break

        if not ctx.evaluator.constraints_satisfied(candidate):
            continue

        result = backtrack(ctx, candidate, best)
        if result is not best:
            best = result
            best_score = evaluate(best, ctx.tasks)

    return best


def _deadline(time_limit_seconds: Optional[float]) -> Optional[float]:
    if time_limit_seconds is None:
        time_limit_seconds = settings.solver_time_limit_seconds
    if time_limit_seconds is None:
        return None
    return time.time() + time_limit_seconds


def _package(ctx: SolverContext, best: Optional[Schedule], evaluations: int, started: float) -> SolveResult:
    elapsed = time.time() - started
    makespan = None if best is None else evaluate(best, ctx.tasks)
    result = SolveResult(
        schedule=best,
        makespan=makespan,
        evaluations=evaluations,
        domain_size=len(ctx.domain),
        possible_leaves=possible_leaves(ctx.domain, len(ctx.tasks)),
        elapsed_seconds=elapsed,
        timed_out=ctx.timed_out,
    )
    if result.timed_out:
        logger.warning(f"Search stopped early after {evaluations} leaf evaluations; returning best so far")
    if best is None:
        logger.warning("No feasible schedule found")
    else:
        logger.info(
            f"Evaluated {evaluations} (of a possible {result.possible_leaves}) leaf nodes "
            f"in {elapsed:.3f} seconds; makespan={makespan}"
        )
    return result


def solve(
    tasks: List[Task],
    config: Optional[ConstraintConfig] = None,
    time_limit_seconds: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
) -> SolveResult:
    """
    Find the globally optimal schedule.

    Args:
        tasks: Tasks in id order
        config: Precedences, pins and exclusivity (default: exclusivity only)
        time_limit_seconds: Stop and return the best so far after this long
            (default: settings.solver_time_limit_seconds)
        cancel_event: Stop and return the best so far once set

    Returns:
        SolveResult; `schedule` is None when the problem is infeasible

    Raises:
        InvalidConfigurationError: the pre-check rejected the configuration
    """
    config = config or ConstraintConfig()
    started = time.time()
    ctx = build_context(tasks, config, _deadline(time_limit_seconds), cancel_event)
    logger.info(f"Solving {len(tasks)} tasks over {len(ctx.domain)} candidate start times")

    best = backtrack(ctx, empty_schedule(len(tasks)), None)
    return _package(ctx, best, ctx.evaluations, started)


def _solve_subtree(
    tasks: List[Task], config: ConstraintConfig, value: int, deadline: Optional[float]
) -> Tuple[Optional[Schedule], int, bool]:
    """Search every schedule whose first task starts at `value` with a private context."""
    ctx = build_context(tasks, config, deadline)
    schedule = empty_schedule(len(tasks))
    schedule[0] = value
    if not ctx.evaluator.constraints_satisfied(schedule):
        return None, 0, False
    best = backtrack(ctx, schedule, None)
    return best, ctx.evaluations, ctx.timed_out


def solve_parallel(
    tasks: List[Task],
    config: Optional[ConstraintConfig] = None,
    max_workers: Optional[int] = None,
    time_limit_seconds: Optional[float] = None,
) -> SolveResult:
    """
    Distribute the start times of the first task across worker processes.

    Each worker owns its schedule copies and its evaluator scratch buffer.
    Results are merged in domain order, so the schedule is the one `solve`
    returns; the evaluation count differs because workers cannot share an
    incumbent.
    """
    config = config or ConstraintConfig()
    started = time.time()
    deadline = _deadline(time_limit_seconds)
    ctx = build_context(tasks, config, deadline)
    workers = max_workers or settings.solver_max_workers
    logger.info(f"Solving {len(tasks)} tasks across {len(ctx.domain)} subtrees with {workers} workers")

    best: Optional[Schedule] = None
    evaluations = 0
    with ProcessPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_solve_subtree, tasks, config, value, deadline) for value in ctx.domain]
        for future in futures:
            schedule, count, stopped = future.result()
            best = select_better(best, schedule, tasks)
            evaluations += count
            ctx.timed_out = ctx.timed_out or stopped

    return _package(ctx, best, evaluations, started)
