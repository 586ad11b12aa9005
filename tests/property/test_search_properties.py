"""Properties of the search engine over seeded runs."""

import math

import pytest

from evofunc import MCTS


def make_oracle(consts, target):
    def oracle(program):
        result = program.evaluate_to_result_and_remaining_stack(consts, [])
        if result is None:
            return None
        value, remaining = result
        return -abs(value - target) - remaining
    return oracle


@pytest.mark.parametrize("run_seed", [0, 1, 2])
def test_high_score_never_decreases(pi_iset, pi_consts, run_seed):
    mcts = MCTS(pi_iset, make_oracle(pi_consts, math.pi),
                max_program_length=12, exploration_chance=0.5, seed=run_seed)
    previous = mcts.high_score()
    for _ in range(500):
        mcts.search_one()
        current = mcts.high_score()
        if previous is not None:
            assert current is not None
            assert current >= previous
        previous = current


@pytest.mark.parametrize("run_seed", [3, 4])
def test_stored_scores_match_reevaluation(pi_iset, pi_consts, run_seed):
    oracle = make_oracle(pi_consts, math.e)
    mcts = MCTS(pi_iset, oracle, max_program_length=8, exploration_chance=0.3, seed=run_seed)
    for _ in range(300):
        mcts.search_one()
    for handle in mcts.arena:
        node = mcts.node(handle)
        if handle != mcts.root_node and node.self_score is not None:
            assert oracle(mcts.make_program(handle)) == node.self_score


def test_best_node_holds_maximum(pi_iset, pi_consts):
    mcts = MCTS(pi_iset, make_oracle(pi_consts, 10.0),
                max_program_length=8, exploration_chance=0.5, seed=5)
    for _ in range(300):
        mcts.search_one()
    scores = [mcts.node(h).self_score for h in mcts.arena
              if mcts.node(h).self_score is not None]
    assert mcts.high_score() == max(scores)


def test_child_score_is_best_child(pi_iset, pi_consts):
    mcts = MCTS(pi_iset, make_oracle(pi_consts, 2.5),
                max_program_length=6, exploration_chance=0.5, seed=6)
    for _ in range(300):
        mcts.search_one()
    for handle in mcts.arena:
        node = mcts.node(handle)
        scores = [mcts.node(c).self_score for c in node.children
                  if mcts.node(c).self_score is not None]
        if scores:
            assert node.child_score == max(scores)


def test_visits_bounded_by_parent(pi_iset, pi_consts):
    mcts = MCTS(pi_iset, make_oracle(pi_consts, 1.0),
                max_program_length=6, exploration_chance=0.2, seed=8)
    for _ in range(300):
        mcts.search_one()
    for handle in mcts.arena:
        node = mcts.node(handle)
        assert len(node.children) <= len(pi_iset)
        assert len({mcts.node(c).instruction for c in node.children}) == len(node.children)
        if node.parent is not None:
            assert node.visits <= mcts.node(node.parent).visits
