"""Modpack installation"""

from .modpack_manager import ModpackManager
from .overrides import copy_overrides

__all__ = [
    "ModpackManager",
    "copy_overrides"
]
