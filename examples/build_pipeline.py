"""
Example: scheduling a six-step build pipeline

Steps of the same resource type (file copy, network transfer, SQL) cannot
run at the same time, step 1 needs step 3's output, step 2 needs step 4's
output, and step 5 is pinned to start at t=70.

Run with: python examples/build_pipeline.py
"""

from stepsched.engine.solver import solve
from stepsched.models.constraints import ConstraintConfig, FixedStart, Precedence
from stepsched.models.entities import ResourceType, Task
from stepsched.utils.benchmarking import summarize
from stepsched.utils.logging_config import setup_logging
from stepsched.utils.timeline import format_report


# 1. Describe the steps, in id order
steps = [
    Task(0, ResourceType.SQL, 23),
    Task(1, ResourceType.FILE, 10),
    Task(2, ResourceType.NETWORK, 45),
    Task(3, ResourceType.NETWORK, 37),
    Task(4, ResourceType.SQL, 60),
    Task(5, ResourceType.FILE, 30),
]

# 2. Declare the rules
rules = ConstraintConfig(
    precedences=[Precedence(after=1, before=3), Precedence(after=2, before=4)],
    pins=[FixedStart(task=5, start=70)],
)


if __name__ == "__main__":
    setup_logging()

    # 3. Search, then print the report and the instrumentation line
    result = solve(steps, rules)
    print(format_report(result.schedule, result.makespan, steps))
    print(summarize(result))
