"""Locate agent CLI executables installed outside ``PATH``.

Node-based agents are often installed by a version manager whose ``bin``
directory is only added to ``PATH`` by an interactive shell profile, so a
plain ``shutil.which`` misses them when the tool runs from an IDE or cron.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

_SHELL_LOOKUP_TIMEOUT_SECONDS = 5


def locate_agent_executable(
    name: str,
    *,
    home: Path | None = None,
    platform: str | None = None,
) -> str | None:
    """Return an executable path for ``name`` or ``None`` when it is not installed."""

    candidate = Path(name).expanduser()
    if candidate.is_absolute() or len(candidate.parts) > 1:
        return str(candidate) if _is_executable(candidate) else None

    found = shutil.which(name)
    if found:
        return found

    home_dir = home or Path.home()
    for path in _candidate_paths(name, home_dir):
        if _is_executable(path):
            return str(path)

    return _login_shell_lookup(name, platform or sys.platform)


def _candidate_paths(name: str, home: Path) -> Iterator[Path]:
    yield from (
        Path("/usr/local/bin") / name,
        Path("/opt/homebrew/bin") / name,
        Path("/usr/bin") / name,
        home / ".npm-global" / "bin" / name,
        home / ".local" / "bin" / name,
        home / ".claude" / "local" / name,
        home / "n" / "bin" / name,
    )

    fnm_bin = "installation/bin"
    versioned = (
        (home / ".nvm" / "versions" / "node", "v", "bin"),
        (home / "Library" / "Application Support" / "fnm" / "node-versions", "v", fnm_bin),
        (home / ".local" / "share" / "fnm" / "node-versions", "v", fnm_bin),
        (home / ".fnm" / "node-versions", "v", fnm_bin),
        (Path("/opt/homebrew/Cellar/node"), "", "bin"),
        (Path("/usr/local/Cellar/node"), "", "bin"),
        (home / ".volta" / "tools" / "image" / "node", "", "bin"),
        (home / ".asdf" / "installs" / "nodejs", "", "bin"),
    )
    for base, prefix, sub_path in versioned:
        for entry in _scan_dir(base, prefix):
            yield entry / sub_path / name


def _scan_dir(base: Path, prefix: str) -> list[Path]:
    """Version directories under ``base``, newest name first."""

    try:
        return sorted(
            (entry for entry in base.iterdir() if entry.name.startswith(prefix)),
            reverse=True,
        )
    except OSError:
        return []


def _login_shell_lookup(name: str, platform: str) -> str | None:
    if platform == "darwin":
        commands = (["/bin/zsh", "-lc", f"which {name}"], ["/bin/bash", "-lc", f"which {name}"])
    else:
        commands = (["which", name],)

    for argv in commands:
        try:
            completed = subprocess.run(  # noqa: S603
                argv,
                check=False,
                capture_output=True,
                text=True,
                timeout=_SHELL_LOOKUP_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as error:
            logger.debug("Shell lookup for %s failed: %s", name, error)
            continue
        first_line = completed.stdout.strip().splitlines()[:1]
        if completed.returncode == 0 and first_line and first_line[0].strip():
            return first_line[0].strip()
    return None


def _is_executable(path: Path) -> bool:
    return path.is_file() and shutil.which(str(path)) is not None
