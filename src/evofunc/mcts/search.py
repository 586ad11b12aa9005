"""Main MCTS search over stack machine programs.

Each edge of the tree appends one instruction to the program built so far.
One call to search_one does:

def search_step(node, depth):
    node.visits += 1
    if depth limit reached or node done: fail
    if node unscored: fail                      # dead branch
    if no children or coin < exploration_chance:
        return create_new_child(node)           # expand + score + backprop
    child = softmax_select(node.children)
    if search_step(child, depth + 1): succeed
    try every sibling in order, then expand here as last resort

The descent keeps its own stack of frames instead of recursing, so
program length is not bounded by the interpreter recursion limit.

The oracle score of a node is computed once, when the node is created,
and never again.
"""

import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from ..core.arena import Arena, ArenaHandle
from ..core.instructions import Instruction, Program
from .backprop import recalculate_scores
from .node import ProgramNode, node_size_bytes
from .selection import select_index
from .tree import (
    copy_live_tree,
    graph_to_dot,
    program_for,
    tree_statistics,
    tree_to_graph,
)

logger = logging.getLogger(__name__)

Oracle = Callable[[Program], Optional[float]]
NodeHandle = ArenaHandle[ProgramNode]

DEFAULT_MAX_PROGRAM_LENGTH = 64


@dataclass
class SearchConfig:
    """Configuration for program MCTS."""
    exploration_chance: float = 0.05
    max_program_length: int = DEFAULT_MAX_PROGRAM_LENGTH
    seed: Optional[int] = None
    # Driver loop settings, not read by the engine itself
    max_iterations: int = 1_000_000
    log_interval: int = 100_000
    # 0 disables periodic garbage collection
    gc_interval: int = 0
    gc_minimum_visits: int = 1

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SearchConfig":
        """Build from a plain dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})


@dataclass
class _Frame:
    """A node whose children are being tried during one rollout."""
    handle: NodeHandle
    depth: int
    program_length: int
    order: List[int]
    position: int = 0


def _finite_or_none(score: Optional[float]) -> Optional[float]:
    if score is None:
        return None
    score = float(score)
    return score if math.isfinite(score) else None


class MCTS:
    """Monte Carlo tree search for the highest scoring program.

    The caller supplies the instruction vocabulary and an oracle that
    scores a complete program (None for programs it rejects). The oracle
    must be deterministic.

    Attributes:
        exploration_chance: Probability of expanding a node that still has
            unused instructions instead of descending into its children
        max_program_length: Longest program the tree may hold
    """

    def __init__(
        self,
        instruction_set: Sequence[Instruction],
        evaluate: Oracle,
        max_program_length: int = DEFAULT_MAX_PROGRAM_LENGTH,
        exploration_chance: float = 0.05,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None
    ):
        if len(instruction_set) == 0:
            raise ValueError("Instruction set must not be empty")
        if max_program_length < 1:
            raise ValueError(f"max_program_length must be at least 1, got {max_program_length}")
        if not 0.0 <= exploration_chance <= 1.0:
            raise ValueError(f"exploration_chance must be in [0, 1], got {exploration_chance}")

        # One child slot per distinct instruction, first occurrence wins
        self.iset: List[Instruction] = list(dict.fromkeys(instruction_set))
        self.exploration_chance = exploration_chance
        self.max_program_length = max_program_length
        self.evaluation_func = evaluate
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        self.arena: Arena[ProgramNode] = Arena.with_capacity(len(self.iset) * max_program_length)
        # Root carries a placeholder instruction that is never part of a program
        self._root_node = self.arena.allocate(ProgramNode(self.iset[0]))
        self._best_node = self._root_node
        self.current_program = Program()

    @classmethod
    def with_max_program_length(
        cls,
        instruction_set: Sequence[Instruction],
        max_program_length: int,
        evaluate: Oracle
    ) -> "MCTS":
        return cls(instruction_set, evaluate, max_program_length=max_program_length)

    @classmethod
    def from_config(
        cls,
        instruction_set: Sequence[Instruction],
        evaluate: Oracle,
        config: Optional[SearchConfig] = None
    ) -> "MCTS":
        config = config or SearchConfig()
        return cls(
            instruction_set,
            evaluate,
            max_program_length=config.max_program_length,
            exploration_chance=config.exploration_chance,
            seed=config.seed,
        )

    @property
    def root_node(self) -> NodeHandle:
        return self._root_node

    @property
    def best_node(self) -> NodeHandle:
        return self._best_node

    def node(self, handle: NodeHandle) -> ProgramNode:
        return self.arena.get(handle)

    def node_count(self) -> int:
        # Root does not count
        return len(self.arena) - 1

    def node_memory_upper_bound(self) -> int:
        """Heuristic memory estimate in bytes, for progress reports only."""
        average_child_count = self.exploration_chance * len(self.iset)
        average_children_size = math.ceil(node_size_bytes() * average_child_count)
        return average_children_size * self.node_count()

    def high_score(self) -> Optional[float]:
        return self.arena.get(self._best_node).self_score

    def make_best_program(self) -> Program:
        return self.make_program(self._best_node)

    def make_program(self, handle: NodeHandle) -> Program:
        return program_for(self.arena, self._root_node, handle)

    def statistics(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = tree_statistics(self.arena, self._root_node)
        stats["high_score"] = self.high_score()
        return stats

    def _has_child(self, node: ProgramNode, inst: Instruction) -> bool:
        return any(self.arena.get(c).instruction == inst for c in node.children)

    def create_new_child(self, handle: NodeHandle) -> bool:
        """Expand handle with one unused instruction and score the result.

        Expects current_program to hold the program of handle.

        Returns:
            False if every instruction already has a child here
        """
        node = self.arena.get(handle)
        new_inst = self.iset[self.rng.integers(len(self.iset))]
        if self._has_child(node, new_inst):
            # Fall back to the first instruction without a child
            new_inst = next(
                (inst for inst in self.iset if not self._has_child(node, inst)),
                None
            )
            if new_inst is None:
                logger.debug("No more allowed instructions")
                return False

        # Simulation step
        self.current_program.push_inst(new_inst)
        score = _finite_or_none(self.evaluation_func(self.current_program))

        new_handle = self.arena.allocate(ProgramNode(new_inst, self_score=score, parent=handle))
        node.children.append(new_handle)

        if score is not None:
            best = self.high_score()
            if best is None or score > best:
                self._best_node = new_handle
            recalculate_scores(self.arena, handle, len(self.iset))

        return True

    def garbage_collect(self, minimum_visits: int) -> None:
        """Rebuild the tree without children visited fewer than minimum_visits times.

        Every handle issued before this call becomes invalid. If the best
        node is dropped, the best node falls back to the root.
        """
        if minimum_visits < 0:
            raise ValueError(f"minimum_visits must be non-negative, got {minimum_visits}")

        before = self.node_count()
        new_arena, new_root, new_best = copy_live_tree(
            self.arena, self._root_node, self._best_node, minimum_visits
        )
        self.arena = new_arena
        self._root_node = new_root
        self._best_node = new_best if new_best is not None else new_root
        logger.info(f"Garbage collected {before - self.node_count()} of {before} nodes")

    def _enter(self, depth: int, handle: NodeHandle):
        """Visit one node on the way down.

        Returns:
            True or False when the node settles its own outcome, otherwise a
            _Frame listing the children still to be tried
        """
        node = self.arena.get(handle)
        node.visits += 1

        if depth == self.max_program_length:
            return False

        if node.done:
            logger.debug("Node already done")
            return False

        # Last level that may still have children
        if depth == self.max_program_length - 1 and len(node.children) == len(self.iset):
            node.done = True
            return False

        if handle != self._root_node:
            # Permanently invalid branch
            if node.self_score is None:
                return False
            self.current_program.push_inst(node.instruction)

        # Expansion step
        can_expand = len(node.children) < len(self.iset)
        if can_expand and (not node.children or self.rng.random() < self.exploration_chance):
            return self.create_new_child(handle)

        # Choice step: chosen child first, then the siblings in order
        scores = [self.arena.get(c).self_score for c in node.children]
        chosen_index = select_index(scores, self.rng.random())
        order = [chosen_index] + [i for i in range(len(node.children)) if i != chosen_index]
        return _Frame(handle, depth, len(self.current_program), order)

    def search_step(self, depth: int, handle: NodeHandle) -> bool:
        """Descend from handle with an explicit stack of frames.

        A child that fails hands control back to its parent frame, which
        truncates the program to its own length and tries the next sibling.
        A frame out of siblings expands its own node as a last resort.
        """
        frames: List[_Frame] = []
        outcome = self._enter(depth, handle)

        while True:
            if outcome is True:
                return True
            if isinstance(outcome, _Frame):
                frames.append(outcome)
            elif not frames:
                return False

            frame = frames[-1]
            self.current_program.truncate_to_len(frame.program_length)
            if frame.position < len(frame.order):
                child = self.arena.get(frame.handle).children[frame.order[frame.position]]
                frame.position += 1
                outcome = self._enter(frame.depth + 1, child)
            else:
                frames.pop()
                outcome = self.create_new_child(frame.handle)

    def search_one(self) -> bool:
        """Run one rollout from the root.

        Returns:
            False once the search space is exhausted
        """
        self.current_program.clear()
        return self.search_step(0, self._root_node)

    def to_graph(self, consts: Sequence[float], variables: Sequence[float] = ()):
        """Tree as a networkx.DiGraph for offline inspection."""
        return tree_to_graph(self.arena, self._root_node, consts, variables)

    def write_dot(self, consts: Sequence[float], variables: Sequence[float] = ()) -> str:
        """Tree as Graphviz DOT text."""
        return graph_to_dot(self.to_graph(consts, variables))
