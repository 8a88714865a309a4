import logging
from typing import List, Optional

from ortools.sat.python import cp_model

from stepsched.engine.validation import validate_problem
from stepsched.graph.task_graph import conflict_pairs
from stepsched.models.constraints import ConstraintConfig
from stepsched.models.entities import Schedule, Task

logger = logging.getLogger(__name__)


def solve_with_ortools(
    tasks: List[Task],
    config: Optional[ConstraintConfig] = None,
    time_limit_seconds: int = 10,
) -> Optional[Schedule]:
    """
    Solve the same makespan problem with Google OR-Tools CP-SAT.

    Start times range over the whole horizon instead of the subset-sum
    domain, so this is an exact reference for the backtracking search.
    No idle time is modelled as: the earliest task starts at 0 and every
    task that starts later is preceded, without a gap, by a task still
    running at its start.
    """
    config = config or ConstraintConfig()
    validate_problem(tasks, config)

    model = cp_model.CpModel()
    horizon = sum(t.duration for t in tasks)

    starts = []
    ends = []
    intervals = []
    for task in tasks:
        start_var = model.NewIntVar(0, horizon - task.duration, f"t{task.id}_start")
        end_var = model.NewIntVar(task.duration, horizon, f"t{task.id}_end")
        intervals.append(model.NewIntervalVar(start_var, task.duration, end_var, f"t{task.id}_interval"))
        starts.append(start_var)
        ends.append(end_var)

    # Hard constraints: precedence and pins
    for p in config.precedences:
        model.Add(starts[p.after] >= ends[p.before])
    for pin in config.pins:
        model.Add(starts[pin.task] == pin.start)

    # Hard constraints: same resource type never overlaps
    if config.exclusive_resource_types:
        for first, second in conflict_pairs(tasks):
            model.AddNoOverlap([intervals[first], intervals[second]])

    # Hard constraints: no idle time
    model.AddMinEquality(model.NewIntVar(0, 0, "first_start"), starts)
    for i in range(len(tasks)):
        starts_at_zero = model.NewBoolVar(f"t{i}_at_zero")
        model.Add(starts[i] == 0).OnlyEnforceIf(starts_at_zero)
        model.Add(starts[i] > 0).OnlyEnforceIf(starts_at_zero.Not())
        covers = []
        for j in range(len(tasks)):
            if i == j:
                continue
            running = model.NewBoolVar(f"t{j}_runs_before_t{i}")
            model.Add(starts[j] < starts[i]).OnlyEnforceIf(running)
            model.Add(ends[j] >= starts[i]).OnlyEnforceIf(running)
            covers.append(running)
        model.AddBoolOr(covers + [starts_at_zero])

    makespan = model.NewIntVar(0, horizon, "makespan")
    model.AddMaxEquality(makespan, ends)
    model.Minimize(makespan)

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = time_limit_seconds
    solver.parameters.log_search_progress = False
    # Single worker keeps the returned optimum reproducible.
    solver.parameters.num_workers = 1

    status = solver.Solve(model)

    if status not in [cp_model.OPTIMAL, cp_model.FEASIBLE]:
        logger.warning(f"CP-SAT found no schedule: {solver.StatusName(status)}")
        return None

    return [int(solver.Value(s)) for s in starts]
