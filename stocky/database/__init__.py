# stocky/database/__init__.py

from .base import StockyBase
from .connection import DatabaseManager

__all__ = ['StockyBase', 'DatabaseManager']
