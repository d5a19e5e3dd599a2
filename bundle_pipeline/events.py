"""Lifecycle events emitted for each physical output of a bundle."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Union


@dataclass(frozen=True, slots=True)
class BuildSkipped:
    name: str

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "skipped": True}


@dataclass(frozen=True, slots=True)
class BuildStarted:
    name: str

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "started": True}


@dataclass(frozen=True, slots=True)
class BuildCompleted:
    name: str
    relative_path: str
    absolute_path: Path

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "relative_path": self.relative_path,
            "absolute_path": str(self.absolute_path),
        }


BuildEvent = Union[BuildSkipped, BuildStarted, BuildCompleted]

__all__ = ["BuildCompleted", "BuildEvent", "BuildSkipped", "BuildStarted"]
