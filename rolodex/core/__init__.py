from rolodex.core.utils import Outcome, complete, ifnone, settle
from rolodex.core.config import Config, CoreConfig
from rolodex.core.logging.logger import get_logger, setup_logger

setup_logger()  # Initialize the default logger

from rolodex.core.base import Rolodex, RolodexABC, RolodexMeta

__all__ = [
    "complete",
    "Config",
    "CoreConfig",
    "get_logger",
    "ifnone",
    "Outcome",
    "Rolodex",
    "RolodexABC",
    "RolodexMeta",
    "settle",
]
