"""Run the bundler for one variant, with the optional legacy syntax pass.

Without downleveling the bundler runs once. With downleveling the output path
is written three times, strictly in order:

1. primary build: modern syntax, unminified, no UMD wrapper;
2. secondary transform: Babel rewrites the file in place;
3. rebuild wrap: the transformed file is bundled again with only the UMD
   wrapper and warning escalation, so nothing is transformed twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from .bundler import Bundler
from .config import BuildContext, BuildOptions
from .downlevel import Transformer, get_babel_config
from .models import VariantConfig
from .plugins import THROW_WARNINGS, UMD
from .schemas.bundle import BundleDescriptor
from .utils import read_text, write_text

logger = logging.getLogger(__name__)


class BuildStage(str, Enum):
    IDLE = "idle"
    PRIMARY_BUILD = "primary-build"
    SECONDARY_TRANSFORM = "secondary-transform"
    REBUILD_WRAP = "rebuild-wrap"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class PrimaryOutput:
    config: VariantConfig
    outfile: Path


@dataclass(frozen=True, slots=True)
class TransformedOutput:
    config: VariantConfig
    outfile: Path


class BuildExecutor:
    def __init__(self, bundler: Bundler, transformer: Transformer, context: BuildContext) -> None:
        self.bundler = bundler
        self.transformer = transformer
        self.context = context
        self.stage = BuildStage.IDLE

    def run(self, descriptor: BundleDescriptor, config: VariantConfig, options: BuildOptions) -> Path:
        """Build ``config`` and return the path of the final artifact."""

        self.stage = BuildStage.IDLE
        if not options.babel or descriptor.skip_babel:
            self._enter(BuildStage.PRIMARY_BUILD, config)
            self.bundler.build(config)
            self._enter(BuildStage.DONE, config)
            return Path(config.outfile)

        primary = self.primary_build(config)
        transformed = self.secondary_transform(descriptor, primary)
        final = self.rebuild_wrap(transformed)
        self._enter(BuildStage.DONE, config)
        return final

    def primary_build(self, config: VariantConfig) -> PrimaryOutput:
        self._enter(BuildStage.PRIMARY_BUILD, config)
        primary_config = replace(
            config,
            plugins=tuple(plugin for plugin in config.plugins if plugin.name != UMD),
            format="cjs" if config.format == UMD else config.format,
            minify=False,
            target=None,
        )
        self.bundler.build(primary_config)
        return PrimaryOutput(config=config, outfile=Path(config.outfile))

    def secondary_transform(self, descriptor: BundleDescriptor, primary: PrimaryOutput) -> TransformedOutput:
        self._enter(BuildStage.SECONDARY_TRANSFORM, primary.config)
        text = read_text(primary.outfile)
        babel_config = get_babel_config(descriptor, self.context.metadata.browserslist)
        code = self.transformer.transform(text, primary.outfile, babel_config)
        write_text(primary.outfile, code)
        return TransformedOutput(config=primary.config, outfile=primary.outfile)

    def rebuild_wrap(self, transformed: TransformedOutput) -> Path:
        config = transformed.config
        self._enter(BuildStage.REBUILD_WRAP, config)
        rebuild_config = replace(
            config,
            entry_points=(str(transformed.outfile),),
            define={},
            plugins=tuple(
                plugin for plugin in config.plugins if plugin.name in (UMD, THROW_WARNINGS)
            ),
            allow_overwrite=True,
        )
        self.bundler.build(rebuild_config)
        return transformed.outfile

    def _enter(self, stage: BuildStage, config: VariantConfig) -> None:
        logger.debug("%s: %s -> %s", config.outfile, self.stage.value, stage.value)
        self.stage = stage


__all__ = [
    "BuildExecutor",
    "BuildStage",
    "PrimaryOutput",
    "TransformedOutput",
]
