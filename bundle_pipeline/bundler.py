"""Bundler invocation through the packaged esbuild driver script."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import BundlerError
from .models import BundleResult, VariantConfig

logger = logging.getLogger(__name__)


class Bundler(Protocol):
    def build(self, config: VariantConfig) -> BundleResult:
        ...


def prepare_config(config: VariantConfig) -> VariantConfig:
    """Let every plugin adjust the options, in chain order."""

    for plugin in config.plugins:
        config = plugin.setup(config)
    return config


def build_request(config: VariantConfig) -> Dict[str, object]:
    plugins: List[Dict[str, object]] = []
    for plugin in config.plugins:
        request = plugin.to_request()
        if request is not None:
            plugins.append(request)
    return {"options": config.to_esbuild_options(), "plugins": plugins}


def finish_build(config: VariantConfig, result: BundleResult) -> BundleResult:
    for plugin in config.plugins:
        plugin.on_end(result)
    return result


class EsbuildBundler:
    """Pipes a JSON build request into ``node <driver>`` and reads the result.

    The driver owns the JavaScript side: it instantiates the requested plugins,
    calls ``esbuild.build`` and prints ``{"errors", "warnings", "metafile"}``.
    Plugin modules load from ``plugin_dir``, resolved against ``cwd``.
    """

    def __init__(
        self,
        driver: Path,
        *,
        node_command: Sequence[str] = ("node",),
        cwd: Optional[Path] = None,
        plugin_dir: Optional[Path] = None,
    ) -> None:
        self.driver = driver
        self.node_command = list(node_command)
        self.cwd = cwd
        self.plugin_dir = plugin_dir

    def build(self, config: VariantConfig) -> BundleResult:
        prepared = prepare_config(config)
        request = build_request(prepared)
        if self.plugin_dir is not None:
            request["pluginDirectory"] = str(self.plugin_dir)
        cmd = [*self.node_command, str(self.driver)]
        logger.debug("Bundling %s with plugins %s", prepared.outfile, prepared.plugin_names)

        proc = subprocess.run(
            cmd,
            input=json.dumps(request),
            capture_output=True,
            text=True,
            check=False,
            cwd=str(self.cwd) if self.cwd else None,
        )
        payload = _parse_payload(proc.stdout)
        errors = list(payload.get("errors") or [])
        if proc.returncode != 0 or errors:
            detail = "; ".join(_message_text(error) for error in errors) or proc.stderr.strip()
            raise BundlerError(
                f"esbuild failed for {prepared.outfile} ({proc.returncode}): {detail}",
                messages=errors,
            )

        result = BundleResult(
            outfile=Path(prepared.outfile),
            errors=errors,
            warnings=list(payload.get("warnings") or []),
            metafile=payload.get("metafile"),
        )
        return finish_build(prepared, result)


def _message_text(message: object) -> str:
    if isinstance(message, dict):
        return str(message.get("text", message))
    return str(message)


def _parse_payload(stdout: str) -> Dict[str, object]:
    text = stdout.strip()
    if not text:
        return {}
    try:
        payload = json.loads(text.splitlines()[-1])
    except json.JSONDecodeError as exc:
        raise BundlerError(f"esbuild driver returned invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise BundlerError("esbuild driver must print a JSON object.")
    return payload


__all__ = [
    "Bundler",
    "EsbuildBundler",
    "build_request",
    "finish_build",
    "prepare_config",
]
