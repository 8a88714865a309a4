from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class Precedence:
    """Task `after` may only start once task `before` has finished."""
    after: int
    before: int


@dataclass(frozen=True)
class FixedStart:
    """Task `task` must start exactly at `start`."""
    task: int
    start: int


@dataclass(frozen=True)
class ConstraintConfig:
    precedences: List[Precedence] = field(default_factory=list)
    pins: List[FixedStart] = field(default_factory=list)
    exclusive_resource_types: bool = True  # same-type tasks never overlap

    def pin_map(self) -> Dict[int, int]:
        return {p.task: p.start for p in self.pins}
