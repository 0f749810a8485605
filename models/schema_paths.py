"""Path specifications used to address nodes of a schema and of a JSON document.

A path is a tuple of PathStep values. Object keys are addressed by name,
concrete array positions by index, and "every element of this array" by the
array wildcard that schema introspection produces (array indices are unknown
at schema time).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class StepKind(str, Enum):
    """Kinds of path step."""
    key = "key"
    index = "index"
    array = "array"


@dataclass(frozen=True)
class PathStep:
    """One segment of a path specification."""
    kind: StepKind
    key: Optional[str] = None
    index: Optional[int] = None

    @classmethod
    def of_key(cls, key: str) -> "PathStep":
        return cls(kind=StepKind.key, key=key)

    @classmethod
    def of_index(cls, index: int) -> "PathStep":
        return cls(kind=StepKind.index, index=index)

    @classmethod
    def wildcard(cls) -> "PathStep":
        return cls(kind=StepKind.array)

    @property
    def is_array_step(self) -> bool:
        """True for steps that descend into array items (index or wildcard)."""
        return self.kind in (StepKind.index, StepKind.array)


ARRAY_WILDCARD = PathStep.wildcard()

PathPart = Union[str, int]


def format_path(steps: Tuple[PathStep, ...]) -> str:
    """Render steps in dotted form: ``a.b[].c`` for wildcards, ``a.b[3].c`` for indices."""
    rendered = ""
    for step in steps:
        if step.kind == StepKind.array:
            rendered += "[]"
        elif step.kind == StepKind.index:
            rendered += f"[{step.index}]"
        else:
            rendered = f"{rendered}.{step.key}" if rendered else str(step.key)
    return rendered


@dataclass(frozen=True)
class EnumPath:
    """Address of an enumerated schema field and its allowed string values.

    Attributes:
        path: Steps from the schema root to the enumerated node
        allowed_values: Allowed string values in schema order
    """
    path: Tuple[PathStep, ...]
    allowed_values: Tuple[str, ...]

    @property
    def dotted(self) -> str:
        """Human-readable form, e.g. ``tasks[].category``."""
        return format_path(self.path)
