"""Definitions for validation issues returned by validators."""
from __future__ import annotations

from dataclasses import dataclass

ERROR = "ERROR"
WARNING = "WARNING"


@dataclass
class Issue:
    """Structured validation issue."""

    severity: str
    code: str
    path: str
    message: str

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "code": self.code,
            "path": self.path,
            "message": self.message,
        }
