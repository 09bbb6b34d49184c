# Common utilities
from boundlic.common.config import Config as Config
from boundlic.common.logging_utils import setup_logger as setup_logger

__all__ = ["Config", "setup_logger"]
