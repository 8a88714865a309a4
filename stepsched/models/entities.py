from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

# Marks a task whose start time has not been chosen yet.
UNASSIGNED = None

# Slot i holds the start time of task i, or UNASSIGNED.
Schedule = List[Optional[int]]


class ResourceType(str, Enum):
    FILE = "file"
    NETWORK = "network"
    SQL = "sql"


@dataclass(frozen=True)
class Task:
    id: int  # position in the task list
    resource_type: ResourceType
    duration: int  # time units

    def end(self, start: int) -> int:
        return start + self.duration


def empty_schedule(size: int) -> Schedule:
    return [UNASSIGNED] * size


def is_complete(schedule: Schedule) -> bool:
    return all(start is not UNASSIGNED for start in schedule)


def assigned_indices(schedule: Schedule) -> List[int]:
    return [i for i, start in enumerate(schedule) if start is not UNASSIGNED]
