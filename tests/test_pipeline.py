from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from bundle_pipeline import bundler as bundler_module
from bundle_pipeline.config import ESBUILD_DRIVER, BuildContext, BuildOptions
from bundle_pipeline.errors import BundlerWarningError
from bundle_pipeline.events import BuildCompleted, BuildSkipped, BuildStarted
from bundle_pipeline.pipeline import create_bundle

from .conftest import descriptor_for
from .fakes import FakeBundler, FakeTransformer


def test_standalone_with_babel_builds_umd_and_esm(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler()
    events = list(
        create_bundle(
            descriptor_for(descriptors, "standalone.js"),
            BuildOptions(babel=True),
            context,
            bundler=bundler,
            transformer=FakeTransformer(),
        )
    )

    umd_path = context.dist_dir / "standalone.js"
    esm_path = context.dist_dir / "esm" / "standalone.mjs"
    assert events == [
        BuildStarted(name="standalone.js"),
        BuildCompleted(name="standalone.js", relative_path="standalone.js", absolute_path=umd_path),
        BuildStarted(name="esm/standalone.mjs"),
        BuildCompleted(name="esm/standalone.mjs", relative_path="esm/standalone.mjs", absolute_path=esm_path),
    ]
    assert [Path(call.outfile) for call in bundler.calls] == [umd_path] * 2 + [esm_path] * 2
    assert umd_path.read_text(encoding="utf-8").startswith("(function (factory) {")
    assert esm_path.read_text(encoding="utf-8") == "var answer = 42;\n"


def test_node_bundle_without_babel_runs_bundler_once(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler()
    events = list(
        create_bundle(descriptor_for(descriptors, "index.js"), BuildOptions(), context, bundler=bundler)
    )

    assert [type(event) for event in events] == [BuildStarted, BuildCompleted]
    assert events[-1].absolute_path == context.dist_dir / "index.js"
    assert len(bundler.calls) == 1
    assert len(bundler.writes) == 1


def test_files_filter_skips_without_building(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler()
    options = BuildOptions(files=frozenset({"esm/parser-babel.mjs"}))

    events = list(create_bundle(descriptor_for(descriptors, "parser-babel.js"), options, context, bundler=bundler))

    assert events[0] == BuildSkipped(name="parser-babel.js")
    assert events[1:] == [
        BuildStarted(name="esm/parser-babel.mjs"),
        BuildCompleted(
            name="esm/parser-babel.mjs",
            relative_path="esm/parser-babel.mjs",
            absolute_path=context.dist_dir / "esm" / "parser-babel.mjs",
        ),
    ]
    assert [Path(call.outfile).name for call in bundler.calls] == ["parser-babel.mjs"]


def test_playground_only_builds_umd(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler()
    options = BuildOptions(playground=True)

    standalone = list(create_bundle(descriptor_for(descriptors, "standalone.js"), options, context, bundler=bundler))
    node = list(create_bundle(descriptor_for(descriptors, "index.js"), options, context, bundler=bundler))

    assert [event.to_dict() for event in standalone[-1:]] == [{"name": "esm/standalone.mjs", "skipped": True}]
    assert isinstance(standalone[1], BuildCompleted)
    assert node == [BuildSkipped(name="index.js")]
    assert len(bundler.calls) == 1


def test_save_as_renames_output(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler()
    options = BuildOptions(save_as="prettier.js", files=frozenset({"doc.js"}))

    events = list(create_bundle(descriptor_for(descriptors, "doc.js"), options, context, bundler=bundler))

    completed = events[-1]
    assert isinstance(completed, BuildCompleted)
    assert completed.name == "doc.js"
    assert completed.relative_path == "prettier.js"
    assert completed.absolute_path == context.dist_dir / "prettier.js"
    assert (context.dist_dir / "prettier.js").exists()


def test_failure_stops_the_stream(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler(warnings=[{"text": "Unsupported dynamic import"}])
    stream = create_bundle(descriptor_for(descriptors, "standalone.js"), BuildOptions(), context, bundler=bundler)

    assert next(stream) == BuildStarted(name="standalone.js")
    with pytest.raises(BundlerWarningError):
        next(stream)
    with pytest.raises(StopIteration):
        next(stream)
    assert len(bundler.calls) == 1


def test_stream_is_lazy(context: BuildContext, descriptors) -> None:
    bundler = FakeBundler()
    stream = create_bundle(descriptor_for(descriptors, "standalone.js"), BuildOptions(), context, bundler=bundler)

    assert bundler.calls == []
    next(stream)
    assert bundler.calls == []
    next(stream)
    assert len(bundler.calls) == 1


def test_default_bundler_runs_packaged_driver(
    monkeypatch: pytest.MonkeyPatch, context: BuildContext, descriptors
) -> None:
    commands = []

    def fake_run(cmd, **kwargs):
        commands.append((cmd, kwargs["cwd"]))
        return subprocess.CompletedProcess(cmd, 0, stdout='{"errors": [], "warnings": []}', stderr="")

    monkeypatch.setattr(bundler_module.subprocess, "run", fake_run)

    events = list(create_bundle(descriptor_for(descriptors, "index.js"), BuildOptions(), context))

    assert isinstance(events[-1], BuildCompleted)
    assert commands == [(["node", str(ESBUILD_DRIVER)], str(context.project_root))]
    assert ESBUILD_DRIVER.is_file()
