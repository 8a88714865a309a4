from typing import List, Optional, Tuple
import logging

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from stepsched.config.settings import get_settings
from stepsched.engine.errors import InvalidConfigurationError
from stepsched.engine.solver import solve, solve_parallel
from stepsched.models.constraints import ConstraintConfig, FixedStart, Precedence
from stepsched.models.entities import ResourceType, Task
from stepsched.storage.cache import ScheduleCache
from stepsched.utils.benchmarking import benchmark_solvers
from stepsched.utils.timeline import render_timeline

router = APIRouter()
cache = ScheduleCache()
settings = get_settings()
logger = logging.getLogger(__name__)


class TaskDTO(BaseModel):
    id: int = Field(..., ge=0)
    resource_type: ResourceType
    duration: int

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v: int):
        """Ensure task duration is reasonable (1 to 10000 time units)."""
        if v < 1 or v > 10000:
            raise ValueError("duration must be between 1 and 10000")
        return v

    def to_domain(self) -> Task:
        return Task(id=self.id, resource_type=self.resource_type, duration=self.duration)


class PrecedenceDTO(BaseModel):
    after: int = Field(..., ge=0)
    before: int = Field(..., ge=0)


class PinDTO(BaseModel):
    task: int = Field(..., ge=0)
    start: int = Field(..., ge=0)


class SolveRequest(BaseModel):
    tasks: List[TaskDTO] = Field(..., min_length=1)
    precedences: List[PrecedenceDTO] = []
    pins: List[PinDTO] = []
    exclusive_resource_types: bool = True

    @field_validator("tasks")
    @classmethod
    def validate_task_count(cls, v: List[TaskDTO]):
        """Search is exhaustive, so the task count is capped."""
        if len(v) > settings.solver_max_tasks:
            raise ValueError(f"at most {settings.solver_max_tasks} tasks can be scheduled per request")
        return v

    def to_domain(self) -> Tuple[List[Task], ConstraintConfig]:
        tasks = [t.to_domain() for t in sorted(self.tasks, key=lambda t: t.id)]
        config = ConstraintConfig(
            precedences=[Precedence(after=p.after, before=p.before) for p in self.precedences],
            pins=[FixedStart(task=p.task, start=p.start) for p in self.pins],
            exclusive_resource_types=self.exclusive_resource_types,
        )
        return tasks, config


class ScheduleResponse(BaseModel):
    schedule: List[int]
    makespan: int
    evaluations: int
    domain_size: int
    possible_leaves: int
    elapsed_seconds: float
    timed_out: bool = False
    cached: bool = False
    timeline: List[str] = []


class BenchmarkEntry(BaseModel):
    solver_name: str
    time_seconds: float
    makespan: Optional[int]
    success: bool


class BenchmarkResponse(BaseModel):
    results: List[BenchmarkEntry]
    num_tasks: int


@router.post("/schedule/solve", response_model=ScheduleResponse, summary="Compute the makespan-optimal schedule")
def solve_endpoint(
    req: SolveRequest,
    parallel: bool = Query(False, description="Split the search across worker processes"),
):
    """
    Compute a start time for every task so that the makespan is minimal.

    **Algorithm**:
    1. Validate input (DTOs with Pydantic validators)
    2. Check cache for an identical problem
    3. Pre-check the configuration (cycles, pins, task ids)
    4. Exhaustive backtracking over subset-sum start times
    5. Cache the result

    **Error Handling:**
    - 400: Invalid configuration (precedence cycle, unreachable pin, ids out of order)
    - 422: Malformed input, or no feasible schedule exists

    **Returns:**
    - `schedule`: start time of each task, in task id order
    - `makespan`: latest end time
    - `evaluations`: complete schedules examined by the search
    - `timeline`: ASCII Gantt chart rows
    """
    logger.info(f"Solve request: {len(req.tasks)} tasks, {len(req.precedences)} precedences, {len(req.pins)} pins")

    problem_hash = ScheduleCache.hash_problem(req.model_dump(mode="json"))
    if settings.cache_enabled:
        cached_result = cache.get(problem_hash)
        if cached_result:
            logger.info("Cache hit")
            return {**cached_result, "cached": True}

    tasks, config = req.to_domain()
    try:
        if parallel:
            result = solve_parallel(tasks, config)
        else:
            result = solve(tasks, config)
    except InvalidConfigurationError as exc:
        logger.warning(f"Rejected configuration: {exc}")
        raise HTTPException(status_code=400, detail=str(exc))

    if not result.feasible:
        raise HTTPException(status_code=422, detail="No feasible schedule found")

    response = {
        "schedule": result.schedule,
        "makespan": result.makespan,
        "evaluations": result.evaluations,
        "domain_size": result.domain_size,
        "possible_leaves": result.possible_leaves,
        "elapsed_seconds": result.elapsed_seconds,
        "timed_out": result.timed_out,
        "timeline": render_timeline(result.schedule, tasks, settings.timeline_width),
    }
    # A truncated search is not the optimum; keep it out of the cache.
    if settings.cache_enabled and not result.timed_out:
        cache.set(problem_hash, response)

    return {**response, "cached": False}


@router.post("/schedule/benchmark", response_model=BenchmarkResponse, summary="Benchmark solvers")
def benchmark(req: SolveRequest):
    """
    Compare the backtracking search against the OR-Tools CP-SAT model.

    **Returns:**
    - Timing, makespan, and success for each solver
    """
    logger.info(f"Benchmark request: {len(req.tasks)} tasks")

    tasks, config = req.to_domain()
    try:
        results = benchmark_solvers(tasks, config)
    except InvalidConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    logger.info(f"Benchmark complete: {len(results)} solvers compared")

    return {
        "results": [
            BenchmarkEntry(
                solver_name=r.solver_name,
                time_seconds=r.time_seconds,
                makespan=r.makespan,
                success=r.success
            )
            for r in results
        ],
        "num_tasks": len(tasks)
    }
