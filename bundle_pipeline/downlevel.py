"""Babel configuration and transform used for the legacy syntax pass."""

from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .errors import DownlevelError
from .schemas.bundle import BundleDescriptor

logger = logging.getLogger(__name__)

NODE_TARGET = "10"

# Built-ins either polyfilled elsewhere or correct natively on every target.
EXCLUDED_BUILTINS = (
    "es.array.unscopables.flat",
    "es.array.unscopables.flat-map",
    "es.array.sort",
    "es.promise",
    "es.promise.finally",
    "es.string.replace",
    "es.symbol.description",
    "es.typed-array.*",
    "web.*",
)

# Options Babel only accepts programmatically; the CLI takes them as flags.
_PROGRAMMATIC_ONLY = ("babelrc", "filename", "configFile", "cwd", "root")


def get_babel_config(descriptor: BundleDescriptor, browserslist: Sequence[str] = ()) -> Dict[str, Any]:
    """Return the Babel options for downleveling the descriptor's output."""

    targets: Dict[str, Any] = {"node": NODE_TARGET}
    if descriptor.is_universal and browserslist:
        targets["browsers"] = list(browserslist)

    plugins: List[Any] = list(descriptor.babel_plugins)
    plugins.append(["@babel/plugin-proposal-object-rest-spread", {"useBuiltIns": True}])

    return {
        "babelrc": False,
        "assumptions": {"setSpreadProperties": True},
        "sourceType": "unambiguous",
        "compact": False,
        "exclude": ["**/core-js/**"],
        "presets": [
            [
                "@babel/preset-env",
                {
                    "targets": targets,
                    "exclude": list(EXCLUDED_BUILTINS),
                    "modules": False,
                    "useBuiltIns": "usage",
                    "corejs": {"version": 3},
                    "debug": False,
                },
            ]
        ],
        "plugins": plugins,
    }


class Transformer(Protocol):
    def transform(self, code: str, filename: Path, config: Mapping[str, Any]) -> str:
        ...


class BabelTransformer:
    """Runs ``@babel/cli`` over source text read from stdin."""

    def __init__(self, command: Sequence[str] = ("npx", "babel"), *, cwd: Optional[Path] = None) -> None:
        self.command = list(command)
        self.cwd = cwd

    def transform(self, code: str, filename: Path, config: Mapping[str, Any]) -> str:
        file_options = {key: value for key, value in config.items() if key not in _PROGRAMMATIC_ONLY}

        # Babel resolves presets, plugins and globs relative to the config file
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            delete=False,
            dir=str(self.cwd or Path.cwd()),
            prefix=".bundle-pipeline-",
            suffix=".babelrc.json",
        ) as config_file:
            json.dump(file_options, config_file)
            config_path = Path(config_file.name)

        cmd = [*self.command, "--config-file", str(config_path), "--filename", str(filename)]
        if config.get("babelrc") is False:
            cmd.append("--no-babelrc")

        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                input=code,
                capture_output=True,
                text=True,
                check=False,
                cwd=str(self.cwd) if self.cwd else None,
            )
        finally:
            config_path.unlink(missing_ok=True)

        if proc.returncode != 0:
            raise DownlevelError(
                f"Babel failed on {filename} ({proc.returncode}): {proc.stderr.strip() or proc.stdout.strip()}"
            )
        return proc.stdout


__all__ = [
    "BabelTransformer",
    "EXCLUDED_BUILTINS",
    "NODE_TARGET",
    "Transformer",
    "get_babel_config",
]
