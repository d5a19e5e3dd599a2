"""Build every variant of a bundle descriptor and report progress as events."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator, Optional

from .bundler import Bundler, EsbuildBundler
from .config import BuildContext, BuildOptions
from .downlevel import BabelTransformer, Transformer
from .events import BuildCompleted, BuildEvent, BuildSkipped, BuildStarted
from .executor import BuildExecutor
from .models import VariantConfig
from .plugins import UMD
from .schemas.bundle import BundleDescriptor
from .variants import iter_variant_configs

logger = logging.getLogger(__name__)


def should_skip(config: VariantConfig, options: BuildOptions) -> bool:
    if options.files is not None and config.outfile not in options.files:
        return True
    return options.playground and config.format != UMD


def create_bundle(
    descriptor: BundleDescriptor,
    options: BuildOptions,
    context: BuildContext,
    *,
    bundler: Optional[Bundler] = None,
    transformer: Optional[Transformer] = None,
) -> Iterator[BuildEvent]:
    """Lazily build each variant of ``descriptor``, one after the other.

    Yields ``BuildSkipped`` for filtered variants, otherwise ``BuildStarted``
    followed by ``BuildCompleted`` once the artifact is final. Any failure
    propagates out of the generator and ends the sequence.
    """

    if bundler is None:
        bundler = EsbuildBundler(
            context.driver,
            node_command=context.node_command,
            plugin_dir=context.plugin_dir,
            cwd=context.project_root,
        )
    if transformer is None:
        transformer = BabelTransformer(context.babel_command, cwd=context.project_root)
    executor = BuildExecutor(bundler, transformer, context)

    for config in iter_variant_configs(descriptor, options, context):
        name = config.outfile
        if should_skip(config, options):
            logger.debug("Skipping %s", name)
            yield BuildSkipped(name=name)
            continue

        relative_path = options.save_as or name
        absolute_path = context.dist_dir / relative_path

        yield BuildStarted(name=name)
        logger.info("Building %s", name)
        executor.run(descriptor, replace(config, outfile=str(absolute_path)), options)
        logger.info("Built %s -> %s", name, absolute_path)
        yield BuildCompleted(name=name, relative_path=relative_path, absolute_path=absolute_path)


__all__ = ["create_bundle", "should_skip"]
