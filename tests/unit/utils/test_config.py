"""Test YAML config loading and logging setup."""

import logging

import pytest

from evofunc import SearchConfig
from evofunc.utils import load_config, load_search_config, set_seed, setup_logging


def test_load_search_config(tmp_path):
    path = tmp_path / "search.yaml"
    path.write_text(
        "search:\n"
        "  exploration_chance: 0.25\n"
        "  max_program_length: 16\n"
        "  seed: 3\n"
        "  unknown_key: 1\n"
    )
    config = load_search_config(path)
    assert config == SearchConfig(exploration_chance=0.25, max_program_length=16, seed=3)


def test_missing_section_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == {}
    assert load_search_config(path) == SearchConfig()


def test_non_mapping_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_set_seed_returns_seeded_generator():
    first = set_seed(5).random()
    second = set_seed(5).random()
    assert first == second


def test_setup_logging_accepts_names(tmp_path):
    log_file = tmp_path / "search.log"
    setup_logging("DEBUG", str(log_file))
    assert logging.getLogger().level == logging.DEBUG
    logging.getLogger("evofunc.test").debug("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in log_file.read_text()
    setup_logging(logging.WARNING)


def test_setup_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        setup_logging("LOUD")
