"""Data models passed between the resolver, the bundler and the executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .schemas.bundle import ModuleReplacement, TextReplacement

if TYPE_CHECKING:
    from .plugins import Plugin


@dataclass(frozen=True, slots=True)
class VariantConfig:
    """Low-level bundler options for one physical output file.

    Instances are never mutated; stages derive adjusted copies with
    ``dataclasses.replace``.
    """

    entry_points: Tuple[str, ...]
    outfile: str
    format: str
    define: Dict[str, str] = field(default_factory=dict)
    plugins: Tuple["Plugin", ...] = ()
    replace_module: Dict[str, ModuleReplacement] = field(default_factory=dict)
    replace_text: Tuple[TextReplacement, ...] = ()
    minify: bool = False
    external: Tuple[str, ...] = ()
    target: Optional[Tuple[str, ...]] = None
    platform: Optional[str] = None
    bundle: bool = True
    metafile: bool = True
    legal_comments: str = "none"
    tsconfig: Optional[str] = None
    main_fields: Tuple[str, ...] = ("main",)
    log_level: str = "error"
    allow_overwrite: bool = False
    global_name: Optional[str] = None
    banner: Optional[str] = None
    footer: Optional[str] = None

    @property
    def plugin_names(self) -> List[str]:
        return [plugin.name for plugin in self.plugins]

    def to_esbuild_options(self) -> Dict[str, object]:
        """Render the esbuild build options (camelCase), leaving out unset values."""

        options: Dict[str, object] = {
            "entryPoints": list(self.entry_points),
            "outfile": self.outfile,
            "format": self.format,
            "define": dict(self.define),
            "bundle": self.bundle,
            "metafile": self.metafile,
            "minify": self.minify,
            "legalComments": self.legal_comments,
            "external": list(self.external),
            "mainFields": list(self.main_fields),
            "logLevel": self.log_level,
        }
        if self.target is not None:
            options["target"] = list(self.target)
        if self.platform:
            options["platform"] = self.platform
        if self.tsconfig:
            options["tsconfig"] = self.tsconfig
        if self.allow_overwrite:
            options["allowOverwrite"] = True
        if self.global_name:
            options["globalName"] = self.global_name
        if self.banner is not None:
            options["banner"] = {"js": self.banner}
        if self.footer is not None:
            options["footer"] = {"js": self.footer}
        return options

    def to_dict(self) -> Dict[str, object]:
        payload = self.to_esbuild_options()
        payload["plugins"] = self.plugin_names
        payload["replaceModule"] = {
            key: value.model_dump(exclude_none=True) for key, value in self.replace_module.items()
        }
        payload["replaceText"] = [rule.model_dump() for rule in self.replace_text]
        return payload


@dataclass(slots=True)
class BundleResult:
    outfile: Path
    errors: List[Dict[str, object]] = field(default_factory=list)
    warnings: List[Dict[str, object]] = field(default_factory=list)
    metafile: Optional[Dict[str, object]] = None
