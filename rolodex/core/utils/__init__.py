"""
Utility functions and classes for the Rolodex core package.
"""

from .checks import expand_tilde, ifnone
from .completion import DoneCallback, Outcome, complete, settle

__all__ = [
    "complete",
    "DoneCallback",
    "expand_tilde",
    "ifnone",
    "Outcome",
    "settle",
]
