"""Translate browserslist queries into esbuild target strings."""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import BundleConfigError

logger = logging.getLogger(__name__)

BrowserslistResolver = Callable[[Sequence[str]], List[str]]

SUPPORTED_ENGINES = ("chrome", "edge", "firefox", "ie", "ios", "node", "opera", "safari")

_ENGINE_ALIASES: Dict[str, str] = {
    "ios_saf": "ios",
    "android": "chrome",
    "and_chr": "chrome",
    "and_ff": "firefox",
    "op_mob": "opera",
}


def run_browserslist(queries: Sequence[str], *, command: Sequence[str] = ("npx", "browserslist")) -> List[str]:
    """Resolve queries to ``"<browser> <version>"`` lines with the browserslist CLI."""

    if not queries:
        return []
    proc = subprocess.run(
        [*command, ", ".join(queries)],
        capture_output=True,
        text=True,
        check=False,
    )
    if proc.returncode != 0:
        raise BundleConfigError(
            f"browserslist failed ({proc.returncode}) for {list(queries)}: {proc.stderr.strip()}"
        )
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


def browserslist_to_esbuild(
    queries: Sequence[str],
    *,
    resolver: Optional[BrowserslistResolver] = None,
) -> List[str]:
    """Return the oldest esbuild target per supported engine for the queries."""

    resolve = resolver or run_browserslist
    entries = resolve(queries)
    targets = _oldest_per_engine(_parse_entries(entries))
    logger.debug("Resolved browserslist %s to esbuild targets %s", list(queries), targets)
    return targets


def _parse_entries(entries: Iterable[str]) -> List[Tuple[str, str]]:
    parsed: List[Tuple[str, str]] = []
    for entry in entries:
        parts = entry.split(" ")
        if len(parts) != 2:
            continue
        engine, version = parts
        engine = _ENGINE_ALIASES.get(engine, engine)
        if engine not in SUPPORTED_ENGINES:
            continue
        # "11.0-12.0" -> "11.0"
        if "-" in version:
            version = version.split("-", 1)[0]
        if version.endswith(".0"):
            version = version[:-2]
        if not all(part.isdigit() for part in version.split(".")):
            # "safari TP" has no esbuild equivalent
            continue
        parsed.append((engine, version))
    return parsed


def _oldest_per_engine(entries: Iterable[Tuple[str, str]]) -> List[str]:
    oldest: Dict[str, str] = {}
    for engine, version in entries:
        current = oldest.get(engine)
        if current is None or _version_key(version) < _version_key(current):
            oldest[engine] = version
    return [f"{engine}{version}" for engine, version in oldest.items()]


def _version_key(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))
