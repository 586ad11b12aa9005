"""MCTS module: Tree search for programs.

This is Monte Carlo Tree Search over stack machine programs.
Each edge appends one instruction.
The oracle scores every new program once.
Softmax over child scores decides where to descend.
The tree remembers which prefixes are exhausted.
"""

from .node import ProgramNode
from .selection import softmax_weights, select_index
from .backprop import recalculate_scores
from .tree import copy_live_tree, program_for, tree_to_graph, graph_to_dot
from .search import MCTS, SearchConfig

__all__ = [
    "ProgramNode",
    "softmax_weights",
    "select_index",
    "recalculate_scores",
    "copy_live_tree",
    "program_for",
    "tree_to_graph",
    "graph_to_dot",
    "MCTS",
    "SearchConfig",
]
