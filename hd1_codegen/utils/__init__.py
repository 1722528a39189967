"""Utility functions for the generator."""

from .files import write_atomic
from .naming import camel_case, kebab_case, python_identifier, snake_case, split_words
from .paths import extract_path_params

__all__ = [
    "write_atomic",
    "camel_case",
    "kebab_case",
    "python_identifier",
    "snake_case",
    "split_words",
    "extract_path_params",
]
