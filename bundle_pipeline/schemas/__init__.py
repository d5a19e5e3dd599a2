"""Schema definitions for bundle configuration."""

from .bundle import (
    BundleDescriptor,
    BundleTarget,
    ModuleReplacement,
    ProjectMetadata,
    TextReplacement,
)

__all__ = [
    "BundleDescriptor",
    "BundleTarget",
    "ModuleReplacement",
    "ProjectMetadata",
    "TextReplacement",
]
