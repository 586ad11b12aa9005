from .logging import setup_logging
from .seed import set_seed
from .config import load_config, load_search_config

__all__ = ["setup_logging", "set_seed", "load_config", "load_search_config"]
