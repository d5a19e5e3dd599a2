"""Bundle variant build pipeline driving esbuild and Babel."""

__version__ = "0.1.0"
from .bundler import Bundler, EsbuildBundler
from .config import BuildContext, BuildOptions, load_bundles, load_project_metadata
from .downlevel import BabelTransformer, get_babel_config
from .errors import (
    BundleConfigError,
    BundlePipelineError,
    BundlerError,
    BundlerWarningError,
    DownlevelError,
)
from .events import BuildCompleted, BuildEvent, BuildSkipped, BuildStarted
from .executor import BuildExecutor, BuildStage
from .models import BundleResult, VariantConfig
from .pipeline import create_bundle
from .schemas.bundle import BundleDescriptor, BundleTarget, ModuleReplacement, ProjectMetadata, TextReplacement
from .variants import iter_variant_configs

__all__ = [
    "__version__",
    "BabelTransformer",
    "BuildCompleted",
    "BuildContext",
    "BuildEvent",
    "BuildExecutor",
    "BuildOptions",
    "BuildSkipped",
    "BuildStage",
    "BuildStarted",
    "BundleConfigError",
    "BundleDescriptor",
    "BundlePipelineError",
    "BundleResult",
    "BundleTarget",
    "Bundler",
    "BundlerError",
    "BundlerWarningError",
    "DownlevelError",
    "EsbuildBundler",
    "ModuleReplacement",
    "ProjectMetadata",
    "TextReplacement",
    "VariantConfig",
    "create_bundle",
    "get_babel_config",
    "iter_variant_configs",
    "load_bundles",
    "load_project_metadata",
]
