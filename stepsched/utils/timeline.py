from typing import List, Optional

from stepsched.models.entities import ResourceType, Schedule, Task

GLYPHS = {
    ResourceType.FILE: "#",
    ResourceType.NETWORK: "=",
    ResourceType.SQL: "*",
}


def render_timeline(schedule: Schedule, tasks: List[Task], width: int = 150) -> List[str]:
    """
    ASCII Gantt chart, one row per task.

    The serial horizon (sum of durations) is sampled every `horizon // width`
    time units, so rows are at most `width` characters wide.
    """
    horizon = sum(t.duration for t in tasks)
    step = max(1, horizon // width)
    rows = []
    for task in tasks:
        start = schedule[task.id]
        end = task.end(start)
        glyph = GLYPHS[task.resource_type]
        rows.append("".join(glyph if start <= t < end else " " for t in range(0, horizon, step)).rstrip())
    return rows


def format_report(
    schedule: Optional[Schedule],
    makespan: Optional[int],
    tasks: List[Task],
    width: int = 150,
) -> str:
    if schedule is None:
        return "No feasible schedule found\n"

    lines = ["Optimal solution: "]
    for task in tasks:
        start = schedule[task.id]
        lines.append(f"Step {task.id}: {start}->{task.end(start)}")
    lines.append(f"Ends at T={makespan}")
    lines.append("")
    lines.extend(render_timeline(schedule, tasks, width))
    lines.extend(f"{glyph} = {rtype.name.title()}" for rtype, glyph in GLYPHS.items())
    return "\n".join(lines) + "\n"
