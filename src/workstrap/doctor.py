from __future__ import annotations

"""Preflight checks.

CONTRACT
- Inputs: nothing (reads platform, effective uid and PATH)
- Outputs (required):
  - DoctorReport (ok=bool, items=[(name, status, details)])
- Invariants:
  - Checks: macOS, not root, tools later steps rely on (informational)
  - Does not modify system state (read-only checks)
- Failure:
  - Returns DoctorReport with ok=False if critical checks fail (platform, root)
"""

import os
import platform
from dataclasses import dataclass

from .util.shell import which


@dataclass(frozen=True)
class DoctorItem:
    name: str
    status: str
    details: str


@dataclass(frozen=True)
class DoctorReport:
    ok: bool
    items: list[DoctorItem]

    def failures(self) -> list[DoctorItem]:
        return [i for i in self.items if i.status == "FAIL"]


def _euid() -> int:
    geteuid = getattr(os, "geteuid", None)
    return geteuid() if geteuid else -1


def doctor_report() -> DoctorReport:
    items: list[DoctorItem] = []
    ok = True

    # 1. Critical: macOS
    system = platform.system()
    if system == "Darwin":
        items.append(DoctorItem("platform", "OK", f"macOS {platform.mac_ver()[0]}".strip()))
    else:
        ok = False
        items.append(DoctorItem("platform", "FAIL", f"{system} is not supported (macOS only)."))

    # 2. Critical: not root. Homebrew refuses to run as root and files
    # created under $HOME would end up owned by root.
    if _euid() == 0:
        ok = False
        items.append(DoctorItem("user", "FAIL", "Do not run as root; sudo is invoked where needed."))
    else:
        items.append(DoctorItem("user", "OK", os.environ.get("USER", "")))

    # 3. Tools
    for tool, note in (
        ("git", "installed by the xcode-cli-tools step"),
        ("brew", "installed by the homebrew step"),
        ("ssh-keygen", "required by the ssh-key step"),
        ("sudo", "required by the hostname step"),
    ):
        path = which(tool)
        if path:
            items.append(DoctorItem(tool, "OK", path))
        else:
            items.append(DoctorItem(tool, "INFO", f"{tool} not found; {note}"))

    return DoctorReport(ok=ok, items=items)
