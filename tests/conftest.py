from __future__ import annotations

import json
from pathlib import Path
from typing import List

import pytest

from bundle_pipeline.config import BuildContext
from bundle_pipeline.schemas.bundle import BundleDescriptor

BUNDLES = [
    {"input": "src/index.js", "output": "index.js", "target": "node"},
    {"input": "src/document/public.js", "output": "doc.js", "target": "universal", "name": "doc"},
    {"input": "src/standalone.js", "output": "standalone.js", "target": "universal", "name": "prettier"},
    {
        "input": "src/language-js/parse/babel.js",
        "output": "parser-babel.js",
        "target": "universal",
        "name": "prettierPlugins.babel",
    },
    {"input": "bin/prettier.js", "output": "bin-prettier.js", "target": "node"},
]

BROWSERSLIST_OUTPUT = ["chrome 100", "chrome 98", "safari 14.0", "ios_saf 14.0-14.4", "firefox 91", "op_mini all"]


def fake_browserslist(queries: List[str]) -> List[str]:
    return list(BROWSERSLIST_OUTPUT)


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps({"name": "prettier", "version": "3.0.0", "browserslist": [">0.5%", "not dead"]}),
        encoding="utf-8",
    )
    for entry in BUNDLES:
        source = root / entry["input"]
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_text("const answer = 42;\n", encoding="utf-8")
    return root


@pytest.fixture()
def descriptors() -> List[BundleDescriptor]:
    return [BundleDescriptor.model_validate(entry) for entry in BUNDLES]


@pytest.fixture()
def context(project: Path, descriptors: List[BundleDescriptor]) -> BuildContext:
    return BuildContext.create(project, descriptors, browserslist_resolver=fake_browserslist)


def descriptor_for(descriptors: List[BundleDescriptor], output: str) -> BundleDescriptor:
    return next(descriptor for descriptor in descriptors if descriptor.output == output)
