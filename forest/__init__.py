"""
forest - Git worktree manager
"""

from .__version__ import __version__
from .core import Forest
from .cli.main import main

__all__ = ["Forest", "main", "__version__"]
