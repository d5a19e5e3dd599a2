from __future__ import annotations

import json
from pathlib import Path

import pytest

from bundle_pipeline.config import ESBUILD_DRIVER, BuildContext, load_bundles, load_project_metadata
from bundle_pipeline.errors import BundleConfigError

from .conftest import BUNDLES, fake_browserslist


def test_load_bundles_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "bundles.yaml"
    path.write_text(
        """
bundles:
  - input: src/index.js
    output: index.js
    target: node
  - input: src/standalone.js
    output: standalone.js
    target: universal
    name: prettier
    minify: false
""",
        encoding="utf-8",
    )

    bundles = load_bundles(path)

    assert [bundle.output for bundle in bundles] == ["index.js", "standalone.js"]
    assert bundles[1].minify is False


def test_load_bundles_from_json_list(tmp_path: Path) -> None:
    path = tmp_path / "bundles.json"
    path.write_text(json.dumps(BUNDLES), encoding="utf-8")

    assert len(load_bundles(path)) == len(BUNDLES)


def test_invalid_descriptor_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "bundles.json"
    path.write_text(json.dumps([{"input": "src/a.js", "target": "node"}]), encoding="utf-8")

    with pytest.raises(BundleConfigError) as excinfo:
        load_bundles(path)
    assert "#0" in str(excinfo.value)


def test_bundle_list_must_be_a_list(tmp_path: Path) -> None:
    path = tmp_path / "bundles.yaml"
    path.write_text("bundles: standalone.js\n", encoding="utf-8")

    with pytest.raises(BundleConfigError):
        load_bundles(path)


def test_malformed_yaml_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "bundles.yaml"
    path.write_text("bundles: [\n", encoding="utf-8")

    with pytest.raises(BundleConfigError):
        load_bundles(path)


def test_project_metadata_requires_version(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    path.write_text(json.dumps({"name": "prettier"}), encoding="utf-8")

    with pytest.raises(BundleConfigError):
        load_project_metadata(path)


def test_context_reads_metadata_once(project: Path, descriptors) -> None:
    calls = []

    def resolver(queries):
        calls.append(list(queries))
        return fake_browserslist(queries)

    context = BuildContext.create(project, descriptors, browserslist_resolver=resolver)

    assert calls == [[">0.5%", "not dead"]]
    assert context.metadata.version == "3.0.0"
    assert context.umd_target == ("chrome98", "safari14", "ios14", "firefox91")
    assert context.dist_dir == project.resolve() / "dist"
    assert context.driver == ESBUILD_DRIVER
    assert context.plugin_dir == project.resolve() / "scripts" / "build" / "esbuild-plugins"


def test_bundled_files_include_package_json(context: BuildContext, descriptors) -> None:
    outputs = [bundled.output for bundled in context.bundled_files]

    assert outputs == [f"./{descriptor.output}" for descriptor in descriptors] + ["./package.json"]
    assert context.bundled_files[-1].input == context.package_json


def test_context_without_browserslist_skips_resolution(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"version": "1.0.0"}), encoding="utf-8")

    def resolver(queries):
        raise AssertionError("browserslist should not run")

    context = BuildContext.create(tmp_path, [], browserslist_resolver=resolver)
    assert context.umd_target == ()


def test_esbuild_driver_ships_with_package() -> None:
    assert ESBUILD_DRIVER.name == "esbuild-driver.mjs"
    assert ESBUILD_DRIVER.parent.name == "bundle_pipeline"
    source = ESBUILD_DRIVER.read_text(encoding="utf-8")
    assert "esbuild.build" in source
    assert "new RegExp(options.filter)" in source
