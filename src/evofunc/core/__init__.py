"""Core building blocks: the arena and the stack machine."""

from .arena import Arena, ArenaHandle
from .instructions import (
    Opcode,
    Instruction,
    Stack,
    Program,
    STACK_SIZE,
    ADD,
    SUB,
    MUL,
    DIV,
    EXP,
    LOG,
    Const,
    Var,
)

__all__ = [
    "Arena",
    "ArenaHandle",
    "Opcode",
    "Instruction",
    "Stack",
    "Program",
    "STACK_SIZE",
    "ADD",
    "SUB",
    "MUL",
    "DIV",
    "EXP",
    "LOG",
    "Const",
    "Var",
]
