"""Stack machine instructions and program evaluation.

A program is a flat sequence of instructions run against a fixed-size
float32 stack. Leaves push values from external constant/variable tables,
operators pop their operands and push one result. Evaluation never raises
on malformed programs: underflow (or overflow) makes the whole program
yield no result.
"""

import operator
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

STACK_SIZE = 128
DTYPE = np.float32

# Smallest positive normal float32, used to keep log() finite
LOG_FLOOR = DTYPE(np.finfo(DTYPE).tiny)


class Opcode(Enum):
    ADD = "Add"
    SUB = "Sub"
    MUL = "Mul"
    DIV = "Div"
    EXP = "Exp"
    LOG = "Log"
    CONST = "Const"
    VAR = "Var"


BINARY_OPCODES = (Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV)
UNARY_OPCODES = (Opcode.EXP, Opcode.LOG)
LEAF_OPCODES = (Opcode.CONST, Opcode.VAR)


@dataclass(frozen=True)
class Instruction:
    """One stack machine instruction.

    Attributes:
        opcode: Operation to perform
        operand: Table index for Const/Var, always 0 for operators
    """
    opcode: Opcode
    operand: int = 0

    def __post_init__(self):
        if self.operand < 0:
            raise ValueError(f"Instruction operand must be non-negative, got {self.operand}")
        if self.opcode not in LEAF_OPCODES and self.operand != 0:
            raise ValueError(f"{self.opcode.value} takes no operand")

    @classmethod
    def const(cls, index: int) -> "Instruction":
        return cls(Opcode.CONST, index)

    @classmethod
    def var(cls, index: int) -> "Instruction":
        return cls(Opcode.VAR, index)

    @property
    def is_leaf(self) -> bool:
        return self.opcode in LEAF_OPCODES

    def __repr__(self) -> str:
        if self.is_leaf:
            return f"{self.opcode.value}({self.operand})"
        return self.opcode.value

    __str__ = __repr__


ADD = Instruction(Opcode.ADD)
SUB = Instruction(Opcode.SUB)
MUL = Instruction(Opcode.MUL)
DIV = Instruction(Opcode.DIV)
EXP = Instruction(Opcode.EXP)
LOG = Instruction(Opcode.LOG)
Const = Instruction.const
Var = Instruction.var


def _safe_div(a, b):
    if b == 0.0:
        return DTYPE(1.0)
    return a / b


def _clamped_log(v):
    return np.log(np.maximum(v, LOG_FLOOR))


_BINARY: Dict[Opcode, Callable] = {
    Opcode.ADD: operator.add,
    Opcode.SUB: operator.sub,
    Opcode.MUL: operator.mul,
    Opcode.DIV: _safe_div,
}

_UNARY: Dict[Opcode, Callable] = {
    Opcode.EXP: np.exp,
    Opcode.LOG: _clamped_log,
}


class Stack:
    """Fixed-capacity float32 stack.

    Pushing onto a full stack is refused rather than overwriting the top
    slot; the evaluator treats a refused push like an underflow.
    """

    def __init__(self, capacity: int = STACK_SIZE):
        self.values = np.zeros(capacity, dtype=DTYPE)
        self.sp = 0

    @property
    def capacity(self) -> int:
        return len(self.values)

    def __len__(self) -> int:
        return self.sp

    def push(self, value) -> bool:
        """Push a value. Returns False if the stack is full."""
        if self.sp >= len(self.values):
            return False
        self.values[self.sp] = value
        self.sp += 1
        return True

    def pop(self) -> Optional[np.float32]:
        """Pop the top value, or None when empty."""
        if self.sp == 0:
            return None
        self.sp -= 1
        return self.values[self.sp]

    def to_list(self) -> List[float]:
        """Remaining values, bottom first."""
        return [float(v) for v in self.values[:self.sp]]

    def __repr__(self) -> str:
        return f"Stack({self.to_list()})"


@dataclass
class Program:
    """Ordered sequence of instructions.

    Also used by the search engine as a scratch buffer, so it supports
    cheap push/truncate in place.
    """
    instructions: List[Instruction] = field(default_factory=list)

    @classmethod
    def create(cls, instructions: Sequence[Instruction]) -> "Program":
        return cls(list(instructions))

    def __len__(self) -> int:
        return len(self.instructions)

    def push_inst(self, inst: Instruction) -> None:
        self.instructions.append(inst)

    def remove_last_inst(self) -> None:
        if self.instructions:
            self.instructions.pop()

    def truncate_to_len(self, length: int) -> None:
        del self.instructions[length:]

    def clear(self) -> None:
        self.instructions.clear()

    def copy(self) -> "Program":
        return Program(list(self.instructions))

    def run(self, consts: Sequence[float], variables: Sequence[float]) -> Optional[Stack]:
        """Execute the program and return the final stack.

        Const/Var indices are not bounds-checked; an index outside the
        tables raises IndexError.

        Returns:
            Final stack, or None if any pop hit an empty stack or any push
            hit a full one
        """
        stack = Stack()
        with np.errstate(all="ignore"):
            for inst in self.instructions:
                op = inst.opcode
                if op is Opcode.CONST:
                    value = DTYPE(consts[inst.operand])
                elif op is Opcode.VAR:
                    value = DTYPE(variables[inst.operand])
                elif op in _UNARY:
                    v = stack.pop()
                    if v is None:
                        return None
                    value = _UNARY[op](v)
                else:
                    b = stack.pop()
                    if b is None:
                        return None
                    a = stack.pop()
                    if a is None:
                        return None
                    value = _BINARY[op](a, b)
                if not stack.push(value):
                    return None
        return stack

    def evaluate_to_result(
        self,
        consts: Sequence[float],
        variables: Sequence[float] = ()
    ) -> Optional[float]:
        """Top of the final stack, or None."""
        stack = self.run(consts, variables)
        if stack is None:
            return None
        top = stack.pop()
        return None if top is None else float(top)

    def evaluate_to_result_and_remaining_stack(
        self,
        consts: Sequence[float],
        variables: Sequence[float] = ()
    ) -> Optional[Tuple[float, int]]:
        """Top of the final stack plus how many values are left beneath it."""
        stack = self.run(consts, variables)
        if stack is None:
            return None
        top = stack.pop()
        if top is None:
            return None
        return float(top), len(stack)

    def evaluate_to_stack(
        self,
        consts: Sequence[float],
        variables: Sequence[float] = ()
    ) -> Optional[List[float]]:
        """Whole final stack (bottom first), or None."""
        stack = self.run(consts, variables)
        return None if stack is None else stack.to_list()

    def render(self) -> str:
        """Plain text, e.g. ``Const(1) Const(1) Add``."""
        return " ".join(repr(inst) for inst in self.instructions)

    def render_pretty(self, consts: Sequence[float]) -> Optional[str]:
        """Render the value on top of the stack as an infix expression.

        Returns None if the program underflows.
        """
        stack: List[str] = []
        for inst in self.instructions:
            op = inst.opcode
            if op is Opcode.CONST:
                stack.append(f"{consts[inst.operand]}")
            elif op is Opcode.VAR:
                stack.append(f"v_{inst.operand}")
            elif op in UNARY_OPCODES:
                if not stack:
                    return None
                arg = stack.pop()
                stack.append(f"(e**{arg})" if op is Opcode.EXP else f"(ln({arg}))")
            else:
                if len(stack) < 2:
                    return None
                right = stack.pop()
                left = stack.pop()
                symbol = {
                    Opcode.ADD: "+",
                    Opcode.SUB: "-",
                    Opcode.MUL: "*",
                    Opcode.DIV: "/",
                }[op]
                stack.append(f"({left} {symbol} {right})")
        return stack.pop() if stack else None

    def __repr__(self) -> str:
        return f"Program([{self.render()}])"
