"""Command-line entry point for bundle builds."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from .config import BuildContext, BuildOptions, load_bundles
from .errors import BundlePipelineError
from .pipeline import create_bundle
from .schemas.bundle import BundleDescriptor
from .variants import iter_variant_configs

logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "variants":
            return _handle_variants(args)
        if args.command == "build":
            return _handle_build(args)
    except BundlePipelineError as exc:
        logger.error("%s", exc)
        return 1

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bundle-pipeline", description="Bundle variant build helpers.")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("variants", "Print the resolved bundler options for each variant."),
        ("build", "Build bundles and print one JSON event per line."),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("--bundles", required=True, help="Bundle list (YAML or JSON).")
        sub.add_argument("--project-root")
        sub.add_argument("--dist-dir")
        sub.add_argument("--driver", help="esbuild driver script (defaults to the packaged driver).")
        sub.add_argument("--bundle", action="append", help="Only this descriptor output (repeatable).")
        sub.add_argument("--file", action="append", help="Only build this output file (repeatable).")
        sub.add_argument("--babel", action=argparse.BooleanOptionalAction, default=False)
        sub.add_argument("--minify", action=argparse.BooleanOptionalAction, default=None)
        sub.add_argument("--playground", action="store_true")
        sub.add_argument("--save-as")
        sub.add_argument("--license-output")
        sub.add_argument("--report", action="append", help="Visualizer report format (repeatable).")

    return parser


def _handle_variants(args: argparse.Namespace) -> int:
    context, descriptors = _load_context(args)
    options = _build_options(args, context.project_root)
    payload = {
        descriptor.output: [config.to_dict() for config in iter_variant_configs(descriptor, options, context)]
        for descriptor in descriptors
    }
    _print_json(payload)
    return 0


def _handle_build(args: argparse.Namespace) -> int:
    context, descriptors = _load_context(args)
    options = _build_options(args, context.project_root)
    for descriptor in descriptors:
        for event in create_bundle(descriptor, options, context):
            print(json.dumps(event.to_dict(), default=str), flush=True)
    return 0


def _load_context(args: argparse.Namespace) -> tuple[BuildContext, List[BundleDescriptor]]:
    workspace = _resolve_workspace(args.project_root)
    bundles = load_bundles(_resolve_path(args.bundles, workspace))
    context = BuildContext.create(
        workspace,
        bundles,
        dist_dir=_resolve_optional_path(args.dist_dir, workspace),
        driver=_resolve_optional_path(args.driver, workspace),
    )
    selected = bundles
    if args.bundle:
        wanted = set(args.bundle)
        selected = [bundle for bundle in bundles if bundle.output in wanted]
        missing = wanted - {bundle.output for bundle in selected}
        if missing:
            raise BundlePipelineError(f"Unknown bundle(s): {', '.join(sorted(missing))}")
    return context, selected


def _build_options(args: argparse.Namespace, workspace: Path) -> BuildOptions:
    return BuildOptions(
        minify=args.minify,
        babel=args.babel,
        files=frozenset(args.file) if args.file else None,
        playground=args.playground,
        save_as=args.save_as,
        on_license_found=_resolve_optional_path(args.license_output, workspace),
        reports=tuple(args.report) if args.report else None,
    )


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _resolve_path(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def _resolve_optional_path(value: Optional[str], workspace: Path) -> Optional[Path]:
    if value is None:
        return None
    return _resolve_path(value, workspace)


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
