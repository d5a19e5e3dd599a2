from __future__ import annotations

import subprocess

import pytest

from bundle_pipeline import browsers
from bundle_pipeline.browsers import browserslist_to_esbuild, run_browserslist
from bundle_pipeline.errors import BundleConfigError


def test_maps_aliases_and_keeps_oldest_version() -> None:
    entries = [
        "and_chr 108",
        "chrome 107",
        "chrome 99",
        "edge 107",
        "firefox 102.0",
        "ios_saf 12.2-12.5",
        "safari 13.1",
        "safari TP",
        "samsung 18.0",
        "op_mini all",
        "node 14.17.0",
    ]

    targets = browserslist_to_esbuild(["defaults"], resolver=lambda queries: entries)

    assert targets == ["chrome99", "edge107", "firefox102", "ios12.2", "safari13.1", "node14.17"]


def test_run_browserslist_passes_queries(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="chrome 100\nfirefox 91\n\n", stderr="")

    monkeypatch.setattr(browsers.subprocess, "run", fake_run)

    assert run_browserslist([">0.5%", "not dead"]) == ["chrome 100", "firefox 91"]
    assert calls == [["npx", "browserslist", ">0.5%, not dead"]]


def test_run_browserslist_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Unknown browser query `foo`")

    monkeypatch.setattr(browsers.subprocess, "run", fake_run)

    with pytest.raises(BundleConfigError):
        run_browserslist(["foo"])


def test_empty_queries_resolve_to_nothing() -> None:
    assert run_browserslist([]) == []
