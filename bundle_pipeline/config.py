"""Build options and the read-only context shared by one build invocation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from .browsers import BrowserslistResolver, browserslist_to_esbuild
from .errors import BundleConfigError
from .schemas.bundle import BundleDescriptor, ProjectMetadata

logger = logging.getLogger(__name__)

NODE_BASELINE = "10"
EMPTY_TSCONFIG = Path(__file__).resolve().parent / "empty-tsconfig.json"
ESBUILD_DRIVER = Path(__file__).resolve().parent / "esbuild-driver.mjs"

# Loaders of optional parsers; universal bundles must not pull them in.
PARSER_LOADER_MODULES: Tuple[str, ...] = (
    "src/language-css/parsers.js",
    "src/language-graphql/parsers.js",
    "src/language-handlebars/parsers.js",
    "src/language-html/parsers.js",
    "src/language-js/parse/parsers.js",
    "src/language-markdown/parsers.js",
    "src/language-yaml/parsers.js",
)


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """Process-scope options supplied once per build invocation."""

    minify: Optional[bool] = None
    babel: bool = False
    files: Optional[FrozenSet[str]] = None
    playground: bool = False
    save_as: Optional[str] = None
    on_license_found: Optional[Path] = None
    reports: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True, slots=True)
class BundledFile:
    input: Path
    output: str


@dataclass(frozen=True, slots=True)
class BuildContext:
    """Everything the pipeline reads from the project, resolved up front."""

    project_root: Path
    dist_dir: Path
    metadata: ProjectMetadata
    bundles: Tuple[BundleDescriptor, ...]
    umd_target: Tuple[str, ...] = ()
    tsconfig: Path = EMPTY_TSCONFIG
    tslib_path: Optional[Path] = None
    assert_shim: Optional[Path] = None
    parser_modules: Tuple[str, ...] = PARSER_LOADER_MODULES
    node_baseline: str = NODE_BASELINE
    driver: Path = ESBUILD_DRIVER
    plugin_dir: Optional[Path] = None
    node_command: Tuple[str, ...] = ("node",)
    babel_command: Tuple[str, ...] = ("npx", "babel")

    @classmethod
    def create(
        cls,
        project_root: Path,
        bundles: Sequence[BundleDescriptor],
        *,
        dist_dir: Optional[Path] = None,
        browserslist_resolver: Optional[BrowserslistResolver] = None,
        driver: Optional[Path] = None,
    ) -> "BuildContext":
        """Read ``package.json`` once and resolve the browser targets once."""

        root = Path(project_root).resolve()
        metadata = load_project_metadata(root / "package.json")
        umd_target: Tuple[str, ...] = ()
        if metadata.browserslist:
            umd_target = tuple(
                browserslist_to_esbuild(metadata.browserslist, resolver=browserslist_resolver)
            )
        return cls(
            project_root=root,
            dist_dir=(dist_dir or root / "dist").resolve(),
            metadata=metadata,
            bundles=tuple(bundles),
            umd_target=umd_target,
            assert_shim=root / "scripts" / "build" / "shims" / "assert.cjs",
            driver=driver or ESBUILD_DRIVER,
            plugin_dir=root / "scripts" / "build" / "esbuild-plugins",
        )

    @property
    def package_json(self) -> Path:
        return self.project_root / "package.json"

    @property
    def tslib_file(self) -> Path:
        return self.tslib_path or self.project_root / "node_modules" / "tslib" / "tslib.js"

    @property
    def bundled_files(self) -> List[BundledFile]:
        files = [
            BundledFile(input=self.project_root / bundle.input, output=f"./{bundle.output}")
            for bundle in self.bundles
        ]
        files.append(BundledFile(input=self.package_json, output="./package.json"))
        return files


def load_project_metadata(path: Path) -> ProjectMetadata:
    """Load the project metadata document (``package.json``)."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise BundleConfigError(f"Invalid JSON in {path}: {exc}") from exc
    try:
        return ProjectMetadata.model_validate(payload)
    except ValidationError as exc:
        raise BundleConfigError(f"Invalid project metadata in {path}: {exc}") from exc


def load_bundles(path: Path) -> List[BundleDescriptor]:
    """Load the ordered bundle descriptor list from a YAML or JSON document."""

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in {".yaml", ".yml"}:
            payload: Any = yaml.safe_load(text) or []
        else:
            payload = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise BundleConfigError(f"Failed to parse bundle list {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("bundles", [])
    if not isinstance(payload, list):
        raise BundleConfigError(f"Bundle list in {path} must be a list of descriptors.")

    bundles: List[BundleDescriptor] = []
    for index, entry in enumerate(payload):
        try:
            bundles.append(BundleDescriptor.model_validate(entry))
        except ValidationError as exc:
            raise BundleConfigError(f"Invalid bundle descriptor #{index} in {path}: {exc}") from exc
    logger.debug("Loaded %d bundle descriptors from %s", len(bundles), path)
    return bundles


__all__ = [
    "BuildContext",
    "BuildOptions",
    "BundledFile",
    "EMPTY_TSCONFIG",
    "ESBUILD_DRIVER",
    "NODE_BASELINE",
    "PARSER_LOADER_MODULES",
    "load_bundles",
    "load_project_metadata",
]
