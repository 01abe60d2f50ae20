"""Consistency checks for project snapshots."""
from .core import VALIDATORS, Validator, has_errors, validate_project
from .issues import ERROR, WARNING, Issue

__all__ = [
    "ERROR",
    "Issue",
    "VALIDATORS",
    "Validator",
    "WARNING",
    "has_errors",
    "validate_project",
]
