from __future__ import annotations

"""Path utilities.

CONTRACT
- Inputs: strings or paths, optionally starting with `~`
- Outputs:
  - expand_home() resolves `~` against an explicit home directory
  - ensure_dir() creates a directory tree
  - safe_filename() returns a sanitized string (no path separators)
- Invariants:
  - expand_home never consults the process HOME when a home is given
- Failure:
  - ensure_dir raises OSError on permission issues
"""

import re
from pathlib import Path

_SAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def expand_home(path: str | Path, home: Path) -> Path:
    s = str(path)
    if s == "~":
        return home
    if s.startswith("~/"):
        return home / s[2:]
    p = Path(s)
    return p if p.is_absolute() else home / p


def safe_filename(name: str, *, default: str = "item") -> str:
    cleaned = _SAFE_FILENAME_RE.sub("_", name).strip("._-")
    return cleaned or default
