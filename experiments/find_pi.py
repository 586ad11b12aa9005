#!/usr/bin/env python3
"""Search for a program whose result is as close to pi as possible.

Usage:
    python experiments/find_pi.py --config configs/search/find_pi.yaml
    python experiments/find_pi.py --max_iterations 100000 --dot mcts.dot
"""

import argparse
import logging
import math
import time

from evofunc import MCTS, ADD, SUB, MUL, DIV, EXP, LOG, Const, SearchConfig
from evofunc.utils import load_config, set_seed, setup_logging

logger = logging.getLogger(__name__)

CONSTS = [0.0, 1.0, 2.0]

INSTRUCTION_SET = [
    Const(0),
    Const(1),
    Const(2),
    ADD,
    SUB,
    MUL,
    DIV,
    EXP,
    LOG,
]


def distance_to_pi(program):
    """Negative distance of the top of stack to pi."""
    result = program.evaluate_to_result_and_remaining_stack(CONSTS, [])
    if result is None:
        return None
    value, _remaining = result
    return -abs(value - math.pi)


def _format(score):
    return "/" if score is None else f"{score:.6f}"


def run(config: SearchConfig, dot_path=None):
    mcts = MCTS.from_config(INSTRUCTION_SET, distance_to_pi, config)
    current_high_score = mcts.high_score()
    logger.info(f"Start score {_format(current_high_score)}")

    start = time.time()
    last = start
    for i in range(config.max_iterations):
        if config.log_interval and i % config.log_interval == 0 and i != 0:
            memory_gb = mcts.node_memory_upper_bound() / 1024 ** 3
            logger.info(f"Explored {mcts.node_count()} nodes in {time.time() - start:.1f}s "
                        f"({time.time() - last:.3f}s/interval), ~{memory_gb:.3f}GB")
            last = time.time()

        if config.gc_interval and i % config.gc_interval == 0 and i != 0:
            mcts.garbage_collect(config.gc_minimum_visits)

        more_exploration = mcts.search_one()

        high_score = mcts.high_score()
        if high_score is not None and (current_high_score is None or high_score > current_high_score):
            current_high_score = high_score
            program = mcts.make_best_program()
            logger.info(f"New highscore {_format(high_score)} with program "
                        f"{program.render_pretty(CONSTS)} [{program.render()}] "
                        f"=> {program.evaluate_to_result(CONSTS, [])}")

        if not more_exploration:
            logger.info("Search space exhausted")
            break

    logger.info(f"Best program has highscore {_format(current_high_score)} "
                f"with program {mcts.make_best_program().render()}")
    logger.info(f"Statistics: {mcts.statistics()}")

    if dot_path:
        with open(dot_path, 'w') as f:
            f.write(mcts.write_dot(CONSTS))
        logger.info(f"Wrote tree to {dot_path}")

    return mcts


def main():
    parser = argparse.ArgumentParser(description="Search for a program approximating pi")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML config file")
    parser.add_argument("--max_iterations", type=int, default=None,
                        help="Override number of rollouts")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--dot", type=str, default=None,
                        help="Write the final tree as Graphviz DOT")
    args = parser.parse_args()

    raw = load_config(args.config) if args.config else {}
    log_config = raw.get('logging', {})
    setup_logging(log_config.get('level', 'INFO'), log_config.get('log_file'))

    config = SearchConfig.from_dict(raw.get('search', {}))
    if args.max_iterations is not None:
        config.max_iterations = args.max_iterations
    if args.seed is not None:
        config.seed = args.seed
    if config.seed is not None:
        set_seed(config.seed)

    run(config, dot_path=args.dot)


if __name__ == "__main__":
    main()
