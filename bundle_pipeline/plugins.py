"""Bundler plugins and the ordered plugin chain for one variant.

Every plugin exposes the same three hooks:

* ``setup(config)`` returns the (possibly adjusted) variant options before the
  bundler runs;
* ``to_request()`` returns the serialized plugin for the bundler driver, or
  ``None`` when the plugin works entirely on the Python side;
* ``on_end(result)`` observes the finished build.

The chain order matters: evaluation, module replacement, polyfills (universal
only), text replacement, license extraction, visualization and, last, warning
escalation. UMD variants prepend the UMD wrapper.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import BundleConfigError, BundlerWarningError
from .models import BundleResult, VariantConfig
from .schemas.bundle import BundleDescriptor, ModuleReplacement, TextReplacement

if TYPE_CHECKING:
    from .config import BuildContext, BuildOptions

UMD = "umd"
THROW_WARNINGS = "throw-warnings"
JS_FILE_FILTER = r"\.[cm]?js$"


@dataclass(frozen=True)
class Plugin:
    name: str = ""

    def setup(self, config: VariantConfig) -> VariantConfig:
        return config

    def options(self) -> Dict[str, object]:
        return {}

    def to_request(self) -> Optional[Dict[str, object]]:
        return {"name": self.name, "options": self.options()}

    def on_end(self, result: BundleResult) -> None:
        return None


@dataclass(frozen=True)
class EvaluatePlugin(Plugin):
    """Replaces ``*.evaluate.js`` modules with their evaluated exports."""

    name: str = "evaluate"


@dataclass(frozen=True)
class ReplaceModulePlugin(Plugin):
    name: str = "replace-module"
    replacements: Mapping[str, ModuleReplacement] = field(default_factory=dict)

    def options(self) -> Dict[str, object]:
        return {
            "replacements": {
                module: replacement.model_dump(exclude_none=True)
                for module, replacement in self.replacements.items()
            }
        }


@dataclass(frozen=True)
class NodePolyfillPlugin(Plugin):
    """Shims Node built-in modules for universal bundles."""

    name: str = "node-modules-polyfill"


@dataclass(frozen=True)
class ReplaceTextPlugin(Plugin):
    name: str = "replace-text"
    filter: str = JS_FILE_FILTER
    replacements: Tuple[TextReplacement, ...] = ()

    def options(self) -> Dict[str, object]:
        return {
            "filter": self.filter,
            "replacements": [rule.model_dump() for rule in self.replacements],
        }


@dataclass(frozen=True)
class LicensePlugin(Plugin):
    name: str = "license"
    cwd: str = "."
    output: str = ""
    include_private: bool = True

    def options(self) -> Dict[str, object]:
        return {
            "cwd": self.cwd,
            "thirdParty": {"includePrivate": self.include_private, "output": self.output},
        }


@dataclass(frozen=True)
class VisualizerPlugin(Plugin):
    name: str = "visualizer"
    formats: Tuple[str, ...] = ()

    def options(self) -> Dict[str, object]:
        return {"formats": list(self.formats)}


@dataclass(frozen=True)
class ThrowWarningsPlugin(Plugin):
    """Turns any bundler warning into a build failure."""

    name: str = THROW_WARNINGS

    def to_request(self) -> Optional[Dict[str, object]]:
        return None

    def on_end(self, result: BundleResult) -> None:
        if not result.warnings:
            return
        lines = [_format_message(message) for message in result.warnings]
        raise BundlerWarningError(
            f"Bundling {result.outfile} produced {len(lines)} warning(s):\n" + "\n".join(lines),
            messages=result.warnings,
        )


@dataclass(frozen=True)
class UmdPlugin(Plugin):
    """Wraps the bundle so it loads through CommonJS, AMD or a global name."""

    name: str = UMD
    global_name: str = ""

    def to_request(self) -> Optional[Dict[str, object]]:
        return None

    def setup(self, config: VariantConfig) -> VariantConfig:
        if config.format != UMD:
            raise BundleConfigError(
                f"UMD plugin expects format '{UMD}' for {config.outfile}, got '{config.format}'."
            )
        temporary_name = _camel_case(self.global_name)
        banner, footer = _umd_wrapper(self.global_name)
        return dataclasses.replace(
            config,
            format="iife",
            global_name=temporary_name,
            banner=banner,
            footer=f"return {temporary_name};\n{footer}",
        )


_UMD_HEADER = """(function (factory) {
  function interopModuleDefault() {
    var module = factory();
    return module.default || module;
  }

  if (typeof exports === "object" && typeof module === "object") {
    module.exports = interopModuleDefault();
  } else if (typeof define === "function" && define.amd) {
    define(interopModuleDefault);
  } else {
    var root =
      typeof globalThis !== "undefined"
        ? globalThis
        : typeof global !== "undefined"
        ? global
        : typeof self !== "undefined"
        ? self
        : this || {};
"""

_UMD_FOOTER = "});"


def _umd_wrapper(name: str) -> Tuple[str, str]:
    parts = name.split(".")
    assignments: List[str] = []
    for index in range(len(parts)):
        target = ".".join(["root", *parts[: index + 1]])
        if index == len(parts) - 1:
            assignments.append(f"    {target} = interopModuleDefault();")
        else:
            assignments.append(f"    {target} = {target} || {{}};")
    banner = _UMD_HEADER + "\n".join(assignments) + "\n  }\n})(function() {\n"
    return banner, _UMD_FOOTER


def _camel_case(name: str) -> str:
    words = [word for word in re.split(r"[^0-9A-Za-z]+", name) if word]
    if not words:
        raise BundleConfigError(f"Invalid UMD global name '{name}'.")
    return words[0][0].lower() + words[0][1:] + "".join(word[0].upper() + word[1:] for word in words[1:])


def _format_message(message: object) -> str:
    if not isinstance(message, Mapping):
        return str(message)
    text = str(message.get("text", message))
    location = message.get("location")
    if isinstance(location, Mapping) and location.get("file"):
        return f"{location['file']}:{location.get('line', 0)}:{location.get('column', 0)}: {text}"
    return text


def build_text_replacements(descriptor: BundleDescriptor, context: "BuildContext") -> Tuple[TextReplacement, ...]:
    """Built-in text patches followed by the descriptor's own rules."""

    rules: List[TextReplacement] = [
        # tslib assigns its helpers onto the global object
        TextReplacement(
            file=str(context.tslib_file),
            find="factory(createExporter(root",
            replacement="factory(createExporter({}",
        )
    ]
    if descriptor.is_universal:
        # `process` is stubbed in universal bundles
        rules.append(
            TextReplacement(
                file="*",
                find="process.env.PRETTIER_DEBUG",
                replacement="globalThis.PRETTIER_DEBUG",
            )
        )
    rules.extend(descriptor.replace_text)
    return tuple(rules)


def compose_plugins(
    descriptor: BundleDescriptor,
    options: "BuildOptions",
    context: "BuildContext",
    *,
    replace_module: Mapping[str, ModuleReplacement],
    replace_text: Sequence[TextReplacement],
) -> Tuple[Plugin, ...]:
    plugins: List[Plugin] = [
        EvaluatePlugin(),
        ReplaceModulePlugin(replacements=dict(replace_module)),
    ]
    if descriptor.is_universal:
        plugins.append(NodePolyfillPlugin())
    plugins.append(ReplaceTextPlugin(replacements=tuple(replace_text)))
    if options.on_license_found:
        plugins.append(
            LicensePlugin(
                cwd=str(context.project_root),
                output=str(Path(options.on_license_found)),
            )
        )
    if options.reports:
        plugins.append(VisualizerPlugin(formats=tuple(options.reports)))
    plugins.append(ThrowWarningsPlugin())
    return tuple(plugins)


def with_umd(plugins: Sequence[Plugin], global_name: str) -> Tuple[Plugin, ...]:
    return (UmdPlugin(global_name=global_name), *plugins)


__all__ = [
    "EvaluatePlugin",
    "LicensePlugin",
    "NodePolyfillPlugin",
    "Plugin",
    "ReplaceModulePlugin",
    "ReplaceTextPlugin",
    "THROW_WARNINGS",
    "ThrowWarningsPlugin",
    "UMD",
    "UmdPlugin",
    "VisualizerPlugin",
    "build_text_replacements",
    "compose_plugins",
    "with_umd",
]
