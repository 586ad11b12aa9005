"""Backpropagation for program MCTS.

After a scored child is added, every ancestor refreshes:
- Child score (best self score among direct children)
- Done flag (one done child per instruction in the vocabulary)
"""

from typing import Optional

from ..core.arena import Arena, ArenaHandle
from .node import ProgramNode


def best_child_score(arena: Arena[ProgramNode], node: ProgramNode) -> Optional[float]:
    """Maximum defined self score among direct children."""
    scores = [
        arena.get(c).self_score
        for c in node.children
        if arena.get(c).self_score is not None
    ]
    return max(scores) if scores else None


def recalculate_scores(
    arena: Arena[ProgramNode],
    handle: ArenaHandle[ProgramNode],
    instruction_count: int
) -> None:
    """Recompute child score and done flag from handle up to the root.

    Args:
        arena: Arena holding the tree
        handle: Node whose children changed
        instruction_count: Size of the instruction vocabulary
    """
    current: Optional[ArenaHandle[ProgramNode]] = handle

    while current is not None:
        node = arena.get(current)
        node.child_score = best_child_score(arena, node)

        done_children = sum(1 for c in node.children if arena.get(c).done)
        if done_children == instruction_count:
            node.done = True

        current = node.parent
