"""Derive the per-output bundler options for a bundle descriptor."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from typing import Dict, Iterator, List, Tuple

from .config import BuildContext, BuildOptions
from .models import VariantConfig
from .plugins import build_text_replacements, compose_plugins, with_umd
from .schemas.bundle import BundleDescriptor, ModuleReplacement

logger = logging.getLogger(__name__)

ESM_COMPANION_PATTERN = re.compile(r"^(?:standalone|parser-.*)\.js$")
FILENAME_PLACEHOLDER = "/prettier-security-filename-placeholder.js"
DIRNAME_PLACEHOLDER = "/prettier-security-dirname-placeholder"
EMPTY_MODULE = ModuleReplacement(contents="")


def build_define(descriptor: BundleDescriptor) -> Dict[str, str]:
    define = {
        "process.env.PRETTIER_TARGET": json.dumps(descriptor.target.value),
        "process.env.NODE_ENV": json.dumps("production"),
    }
    if descriptor.is_universal:
        # Browser bundles must not embed paths of the build machine
        define["process"] = json.dumps({"env": {}, "argv": []})
        define["__filename"] = json.dumps(FILENAME_PLACEHOLDER)
        define["__dirname"] = json.dumps(DIRNAME_PLACEHOLDER)
    return define


def build_module_replacements(
    descriptor: BundleDescriptor, context: BuildContext
) -> Dict[str, ModuleReplacement]:
    """Layer the default replacements under the descriptor's own overrides."""

    replacements: Dict[str, ModuleReplacement] = {}
    if descriptor.is_universal:
        replacements[str(context.package_json)] = ModuleReplacement(
            contents=json.dumps({"version": context.metadata.version}),
            loader="json",
        )
        for module in context.parser_modules:
            replacements[str(context.project_root / module)] = EMPTY_MODULE
        if context.assert_shim is not None:
            replacements["assert"] = ModuleReplacement(path=str(context.assert_shim))
    else:
        for module, output in _sibling_files(descriptor, context):
            replacements[module] = ModuleReplacement(path=output, external=True)

    replacements.update(descriptor.replace_module)
    return replacements


def resolve_minify(descriptor: BundleDescriptor, options: BuildOptions) -> bool:
    if options.minify is not None:
        return options.minify
    if descriptor.minify is not None:
        return descriptor.minify
    return descriptor.is_universal


def resolve_target(descriptor: BundleDescriptor, context: BuildContext) -> Tuple[str, ...]:
    if descriptor.esbuild_target:
        return tuple(descriptor.esbuild_target)
    target = [f"node{context.node_baseline}"]
    if descriptor.is_universal:
        target.extend(context.umd_target)
    return tuple(target)


def esm_outfile(output: str) -> str:
    return "esm/" + re.sub(r"\.js$", ".mjs", output)


def iter_variant_configs(
    descriptor: BundleDescriptor,
    options: BuildOptions,
    context: BuildContext,
) -> Iterator[VariantConfig]:
    """Yield one :class:`VariantConfig` per physical output of the descriptor."""

    replace_module = build_module_replacements(descriptor, context)
    replace_text = build_text_replacements(descriptor, context)
    plugins = compose_plugins(
        descriptor,
        options,
        context,
        replace_module=replace_module,
        replace_text=replace_text,
    )
    base = VariantConfig(
        entry_points=(str(context.project_root / descriptor.input),),
        outfile=descriptor.output,
        format="cjs",
        define=build_define(descriptor),
        plugins=plugins,
        replace_module=replace_module,
        replace_text=replace_text,
        minify=resolve_minify(descriptor, options),
        external=tuple(descriptor.external),
        target=resolve_target(descriptor, context),
        tsconfig=str(context.tsconfig),
    )

    if descriptor.is_universal:
        logger.debug("Resolved UMD variant %s", descriptor.output)
        yield replace(
            base,
            format="umd",
            plugins=with_umd(plugins, descriptor.name or ""),
        )
        if ESM_COMPANION_PATTERN.match(descriptor.output):
            logger.debug("Resolved ESM variant for %s", descriptor.output)
            yield replace(base, outfile=esm_outfile(descriptor.output), format="esm")
        return

    siblings = [output for _, output in _sibling_files(descriptor, context)]
    logger.debug("Resolved CommonJS variant %s", descriptor.output)
    yield replace(
        base,
        platform="node",
        external=(*base.external, *siblings),
    )


def _sibling_files(descriptor: BundleDescriptor, context: BuildContext) -> List[Tuple[str, str]]:
    own_input = context.project_root / descriptor.input
    return [
        (str(bundled.input), bundled.output)
        for bundled in context.bundled_files
        if bundled.input != own_input
    ]


__all__ = [
    "DIRNAME_PLACEHOLDER",
    "ESM_COMPANION_PATTERN",
    "FILENAME_PLACEHOLDER",
    "build_define",
    "build_module_replacements",
    "esm_outfile",
    "iter_variant_configs",
    "resolve_minify",
    "resolve_target",
]
