import time
from dataclasses import dataclass
from typing import List, Optional

from stepsched.config.settings import get_settings
from stepsched.engine.ortools_solver import solve_with_ortools
from stepsched.engine.solver import SolveResult, solve
from stepsched.models.constraints import ConstraintConfig
from stepsched.models.entities import Task
from stepsched.utils.scoring import evaluate

settings = get_settings()


@dataclass
class BenchmarkResult:
    solver_name: str
    time_seconds: float
    makespan: Optional[int]
    success: bool
    num_tasks: int


def summarize(result: SolveResult) -> str:
    """One-line instrumentation summary of a backtracking run."""
    return (
        f"Evaluated {result.evaluations} (of a possible {result.possible_leaves}) "
        f"leaf nodes in {result.elapsed_seconds:.3f} seconds."
    )


def benchmark_solvers(tasks: List[Task], config: Optional[ConstraintConfig] = None) -> List[BenchmarkResult]:
    """
    Compare backtracking vs OR-Tools on the same instance.
    Returns list of BenchmarkResult.
    """
    results = []

    bt_result = solve(tasks, config)
    results.append(BenchmarkResult(
        solver_name="backtracking",
        time_seconds=bt_result.elapsed_seconds,
        makespan=bt_result.makespan,
        success=bt_result.feasible,
        num_tasks=len(tasks),
    ))

    start = time.time()
    ort_result = solve_with_ortools(tasks, config, time_limit_seconds=settings.ortools_time_limit_seconds)
    ort_time = time.time() - start
    results.append(BenchmarkResult(
        solver_name="ortools",
        time_seconds=ort_time,
        makespan=None if ort_result is None else evaluate(ort_result, tasks),
        success=ort_result is not None,
        num_tasks=len(tasks),
    ))

    return results
