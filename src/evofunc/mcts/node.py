"""MCTS node for program search."""

import sys
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.arena import ArenaHandle
from ..core.instructions import Instruction


@dataclass
class ProgramNode:
    """One step of a partial program in the search tree.

    The program a node stands for is the chain of instructions from the
    root down to it. Nodes only refer to each other through arena handles.

    Attributes:
        instruction: Instruction appended to reach this node
        self_score: Oracle score of this node's program (None if invalid)
        child_score: Best self_score among direct children
        children: Child handles in insertion order, at most one per instruction
        parent: Parent handle (None for root)
        done: Whole subtree is expanded; never reset once set
        visits: How often this node has been selected in search
    """
    instruction: Instruction
    self_score: Optional[float] = None
    child_score: Optional[float] = None
    children: List[ArenaHandle["ProgramNode"]] = field(default_factory=list)
    parent: Optional[ArenaHandle["ProgramNode"]] = None
    done: bool = False
    visits: int = 0

    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def is_dead(self) -> bool:
        """Non-root node whose program could not be scored."""
        return self.parent is not None and self.self_score is None

    def copy(self) -> "ProgramNode":
        """Shallow copy with its own children list."""
        return ProgramNode(
            instruction=self.instruction,
            self_score=self.self_score,
            child_score=self.child_score,
            children=list(self.children),
            parent=self.parent,
            done=self.done,
            visits=self.visits,
        )

    def __repr__(self) -> str:
        return (f"ProgramNode({self.instruction!r}, self={self.self_score}, "
                f"child={self.child_score}, children={len(self.children)}, "
                f"done={self.done}, visits={self.visits})")


def node_size_bytes() -> int:
    """Rough per-node footprint: the object, its attribute dict and an empty child list."""
    sample = ProgramNode(Instruction.const(0), self_score=0.0, child_score=0.0)
    return (sys.getsizeof(sample)
            + sys.getsizeof(sample.__dict__)
            + sys.getsizeof(sample.children)
            + sys.getsizeof(sample.self_score))
