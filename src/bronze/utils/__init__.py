"""Utility modules."""

from . import file_ops, hash_calc, path_utils, reporting
from .error_handler import ErrorHandler

__all__ = ["file_ops", "hash_calc", "path_utils", "reporting", "ErrorHandler"]
