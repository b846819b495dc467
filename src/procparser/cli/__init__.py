"""
Command-line interface for procparser.
"""

from .main import main, main_cli

__all__ = ["main", "main_cli"]
