#!/usr/bin/env python3
"""Evaluate a fixed program directly, without any search."""

import logging

from evofunc import ADD, Const, Program
from evofunc.utils import setup_logging

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    consts = [1.0, 2.0]
    program = Program.create([Const(0), Const(1), ADD])

    logger.info(f"Program: {program.render()} = {program.render_pretty(consts)}")
    logger.info(f"Result: {program.evaluate_to_result(consts, [])}")


if __name__ == "__main__":
    main()
