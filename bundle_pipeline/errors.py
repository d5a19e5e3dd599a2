"""Exceptions raised by the bundle pipeline."""

from __future__ import annotations

from typing import List, Optional, Sequence


class BundlePipelineError(RuntimeError):
    """Base class for failures surfaced by the bundle pipeline."""


class BundleConfigError(BundlePipelineError):
    """Raised when a bundle descriptor or project metadata is malformed."""


class BundlerError(BundlePipelineError):
    """Raised when the underlying bundler reports a failure."""

    def __init__(self, message: str, *, messages: Optional[Sequence[object]] = None) -> None:
        super().__init__(message)
        self.messages: List[object] = list(messages or [])


class BundlerWarningError(BundlerError):
    """Raised when the bundler emits warnings; warnings are never tolerated."""


class DownlevelError(BundlePipelineError):
    """Raised when the syntax downlevel transform fails."""


__all__ = [
    "BundlePipelineError",
    "BundleConfigError",
    "BundlerError",
    "BundlerWarningError",
    "DownlevelError",
]
