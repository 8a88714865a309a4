import pytest
from stepsched.models.constraints import ConstraintConfig, FixedStart, Precedence
from stepsched.models.entities import ResourceType, Task


@pytest.fixture
def single_task():
    """One unconstrained task."""
    return [Task(id=0, resource_type=ResourceType.SQL, duration=23)]


def make_pipeline_tasks():
    """Six build steps sharing three resource types."""
    return [
        Task(id=0, resource_type=ResourceType.SQL, duration=23),
        Task(id=1, resource_type=ResourceType.FILE, duration=10),
        Task(id=2, resource_type=ResourceType.NETWORK, duration=45),
        Task(id=3, resource_type=ResourceType.NETWORK, duration=37),
        Task(id=4, resource_type=ResourceType.SQL, duration=60),
        Task(id=5, resource_type=ResourceType.FILE, duration=30),
    ]


def make_pipeline_config():
    """Step 1 after step 3, step 2 after step 4, step 5 pinned at t=70."""
    return ConstraintConfig(
        precedences=[Precedence(after=1, before=3), Precedence(after=2, before=4)],
        pins=[FixedStart(task=5, start=70)],
    )


@pytest.fixture
def pipeline_tasks():
    return make_pipeline_tasks()


@pytest.fixture
def pipeline_config():
    return make_pipeline_config()


@pytest.fixture
def small_tasks():
    """Four short tasks, two of them competing for SQL."""
    return [
        Task(id=0, resource_type=ResourceType.SQL, duration=3),
        Task(id=1, resource_type=ResourceType.FILE, duration=2),
        Task(id=2, resource_type=ResourceType.SQL, duration=4),
        Task(id=3, resource_type=ResourceType.NETWORK, duration=5),
    ]


@pytest.fixture
def small_config():
    return ConstraintConfig(precedences=[Precedence(after=3, before=1)])


@pytest.fixture
def infeasible_scenario():
    """Two file copies pinned to the same start: they would overlap."""
    tasks = [
        Task(id=0, resource_type=ResourceType.FILE, duration=10),
        Task(id=1, resource_type=ResourceType.FILE, duration=10),
    ]
    config = ConstraintConfig(pins=[FixedStart(task=0, start=0), FixedStart(task=1, start=0)])
    return tasks, config


def task_payload(tasks):
    """JSON body fragment for the API."""
    return [
        {"id": t.id, "resource_type": t.resource_type.value, "duration": t.duration}
        for t in tasks
    ]


def config_payload(config):
    return {
        "precedences": [{"after": p.after, "before": p.before} for p in config.precedences],
        "pins": [{"task": p.task, "start": p.start} for p in config.pins],
        "exclusive_resource_types": config.exclusive_resource_types,
    }


def has_idle_time(schedule, tasks):
    """Reference check: any uncovered unit below the makespan."""
    makespan = max(s + t.duration for s, t in zip(schedule, tasks))
    covered = set()
    for s, t in zip(schedule, tasks):
        covered.update(range(s, s + t.duration))
    return any(unit not in covered for unit in range(makespan))


def same_type_overlap(schedule, tasks):
    """Reference check: sort each type by start and compare neighbours."""
    by_type = {}
    for s, t in zip(schedule, tasks):
        by_type.setdefault(t.resource_type, []).append((s, s + t.duration))
    for intervals in by_type.values():
        intervals.sort()
        for (_, end), (next_start, _) in zip(intervals, intervals[1:]):
            if next_start < end:
                return True
    return False
