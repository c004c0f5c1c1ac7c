"""Plain data types shared by the node tree and the dependency set."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .nodes import Node

NODE_TYPES: tuple[str, ...] = ("package", "class", "interface")


@dataclass
class ViolationsGroup:
    """Violations of one architecture rule, shown or hidden together."""

    rule: str
    violations: list[str] = field(default_factory=list)  # dependency descriptions
    is_visible: bool = False

    def __len__(self) -> int:
        return len(self.violations)


@dataclass(eq=False)
class Dependency:
    """A single code-level dependency between two leaf-or-inner nodes."""

    origin: "Node"
    target: "Node"
    type: str
    description: str = ""

    @property
    def is_between_class_and_inner_class(self) -> bool:
        o, t = self.origin.full_name, self.target.full_name
        return t.startswith(o + "$") or o.startswith(t + "$")

    def __repr__(self) -> str:
        return f"Dependency({self.origin.full_name} -{self.type}-> {self.target.full_name})"


@dataclass
class VisibleDependency:
    """Dependencies merged onto the nodes that are currently visible."""

    origin: "Node"
    target: "Node"
    types: list[str] = field(default_factory=list)
    descriptions: list[str] = field(default_factory=list)
    is_violation: bool = False

    def to_dict(self) -> dict:
        return {
            "origin": self.origin.full_name,
            "target": self.target.full_name,
            "types": list(self.types),
            "descriptions": list(self.descriptions),
            "violation": self.is_violation,
        }


@dataclass(frozen=True)
class LayoutSnapshot:
    """What a relayout pass hands to the rendering side."""

    nodes: tuple[str, ...]
    folded: tuple[str, ...]
    dependencies: tuple[VisibleDependency, ...]
    node_font_size: int
    circle_padding: int
