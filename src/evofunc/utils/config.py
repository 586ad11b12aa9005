"""YAML configuration loading."""

from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ..mcts.search import SearchConfig


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML file. An empty file gives an empty dict."""
    with open(path, 'r') as f:
        config = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(config).__name__}")
    return config


def load_search_config(path: Union[str, Path]) -> SearchConfig:
    """Read the ``search`` section of a YAML config."""
    return SearchConfig.from_dict(load_config(path).get('search', {}))
