"""Pytest fixtures for testing."""

import random

import numpy as np
import pytest

from evofunc import ADD, DIV, EXP, LOG, MUL, SUB, Const


@pytest.fixture
def seed():
    """Set random seed for reproducibility."""
    seed_value = 42
    random.seed(seed_value)
    np.random.seed(seed_value)
    return seed_value


@pytest.fixture
def adder_consts():
    return [0.0, 1.0]


@pytest.fixture
def adder_iset():
    """Smallest useful vocabulary: two constants and addition."""
    return [Const(0), Const(1), ADD]


@pytest.fixture
def pi_consts():
    return [0.0, 1.0, 2.0]


@pytest.fixture
def pi_iset():
    """Full vocabulary over three constants."""
    return [Const(0), Const(1), Const(2), ADD, SUB, MUL, DIV, EXP, LOG]


@pytest.fixture
def top_of_stack(adder_consts):
    """Oracle scoring a program by its final stack value."""
    def oracle(program):
        return program.evaluate_to_result(adder_consts, [])
    return oracle


@pytest.fixture
def run_until_exhausted():
    """Call search_one until it reports exhaustion. Returns the number of calls."""
    def run(mcts, max_iterations=10_000):
        for i in range(max_iterations):
            if not mcts.search_one():
                return i + 1
        raise AssertionError(f"search not exhausted after {max_iterations} iterations")
    return run


@pytest.fixture
def node_depth():
    """Depth of a node below the root."""
    def depth_of(mcts, handle):
        depth = 0
        while handle != mcts.root_node:
            handle = mcts.node(handle).parent
            depth += 1
        return depth
    return depth_of
