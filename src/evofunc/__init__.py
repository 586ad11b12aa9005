"""Program synthesis by Monte Carlo tree search.

Searches short stack machine programs for the one an external fitness
function scores highest.

Components:
- core/ - Arena, instructions, stack machine evaluator
- mcts/ - Tree nodes, softmax selection, backprop, search engine
- utils/ - Logging, seeding, YAML config
"""

__version__ = "0.1.0"

from .core.arena import Arena, ArenaHandle
from .core.instructions import (
    Instruction,
    Opcode,
    Program,
    Stack,
    ADD,
    SUB,
    MUL,
    DIV,
    EXP,
    LOG,
    Const,
    Var,
)
from .mcts.search import MCTS, SearchConfig

__all__ = [
    "Arena",
    "ArenaHandle",
    "Instruction",
    "Opcode",
    "Program",
    "Stack",
    "ADD",
    "SUB",
    "MUL",
    "DIV",
    "EXP",
    "LOG",
    "Const",
    "Var",
    "MCTS",
    "SearchConfig",
]
