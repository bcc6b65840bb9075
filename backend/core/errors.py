"""
errors.py — Error kinds raised by the grade core and its store collaborators.

The API layer maps each kind to an HTTP status in main.py.
"""


class GradebookError(Exception):
    """Base class for all gradebook errors."""


class InvalidInputError(GradebookError):
    """An id parameter is not an integer or lies outside its allowed range."""


class RecordValidationError(GradebookError):
    """A score record was rejected at the write boundary."""


class StorageUnavailableError(GradebookError):
    """The record store failed or timed out."""
