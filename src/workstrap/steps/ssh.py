from __future__ import annotations

"""SSH steps: key pair and GitHub SSH access.

CONTRACT
- Inputs: StepContext (token, ssh_key settings)
- Outputs (required):
  - A private key (mode 0400) and its .pub next to it
  - The public key registered on the token owner's GitHub account (own step,
    so a failed upload is retried on the next run)
  - github.com in ~/.ssh/known_hosts
- Invariants:
  - An existing private key is never overwritten
  - github-ssh-access never weakens host key checking
- Failure:
  - PreconditionError "Permission denied (publickey)" when GitHub still rejects the key
"""

import os
import socket
from pathlib import Path

from ..errors import PreconditionError
from ..util.shell import run_cmd, succeeds
from .base import StepContext

GITHUB_SSH = "git@github.com"
# `ssh -T git@github.com` exits 1 on success (no shell access) and 255 on
# connection or authentication failure.
SSH_FAILURE = 255


def key_path(ctx: StepContext) -> Path:
    return ctx.path(ctx.settings.ssh_key.path)


def ssh_key_exists(ctx: StepContext) -> bool:
    return key_path(ctx).is_file()


def keygen_args(ctx: StepContext, path: Path, comment: str) -> list[str]:
    key = ctx.settings.ssh_key
    args = ["ssh-keygen", "-q", "-t", key.type]
    if key.type == "rsa":
        args += ["-b", str(key.bits or 4096)]
    return args + ["-f", str(path), "-N", "", "-C", comment]


def _same_key(a: str, b: str) -> bool:
    # Compare "<type> <base64>", ignoring the comment.
    return a.split()[:2] == b.split()[:2]


def create_ssh_key(ctx: StepContext) -> None:
    path = key_path(ctx)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    comment = ctx.config.hostname or socket.gethostname()
    run_cmd(keygen_args(ctx, path, comment))
    os.chmod(path, 0o400)
    ctx.say(public_key(ctx))


def public_key_path(ctx: StepContext) -> Path:
    path = key_path(ctx)
    return path.with_name(path.name + ".pub")


def public_key(ctx: StepContext) -> str:
    pub = public_key_path(ctx)
    if not pub.is_file():
        raise FileNotFoundError(f"Public key not found: {pub}")
    return pub.read_text(encoding="utf-8").strip()


# github-ssh-key


def github_key_registered(ctx: StepContext) -> bool:
    if not public_key_path(ctx).is_file():
        return False
    key = public_key(ctx)
    with ctx.github() as gh:
        return any(_same_key(key, k) for k in gh.list_ssh_keys())


def upload_github_key(ctx: StepContext) -> None:
    key = public_key(ctx)
    comment = ctx.config.hostname or socket.gethostname()
    with ctx.github() as gh:
        if gh.add_ssh_key(f"workstrap {comment}", key):
            ctx.say("Added the public key to your GitHub account.")
        else:
            ctx.say("GitHub already has this public key.")


def _known_hosts(ctx: StepContext) -> Path:
    return ctx.home / ".ssh" / "known_hosts"


def _ssh_probe() -> int:
    res = run_cmd(
        ["ssh", "-T", "-o", "BatchMode=yes", "-o", "StrictHostKeyChecking=yes", GITHUB_SSH],
        timeout_s=30,
        check=False,
    )
    return res.returncode


def github_ssh_ok(ctx: StepContext) -> bool:
    return _ssh_probe() != SSH_FAILURE


def enable_github_ssh(ctx: StepContext) -> None:
    known_hosts = _known_hosts(ctx)
    if not succeeds(["ssh-keygen", "-F", "github.com", "-f", str(known_hosts)]):
        scan = run_cmd(["ssh-keyscan", "-t", "ed25519,rsa", "github.com"], timeout_s=30)
        known_hosts.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        with known_hosts.open("a", encoding="utf-8") as f:
            f.write(scan.stdout.rstrip("\n") + "\n")
    # Best effort: no agent is fine when the key is in a default location.
    run_cmd(["ssh-add", str(key_path(ctx))], check=False)
    if _ssh_probe() == SSH_FAILURE:
        raise PreconditionError(
            "Permission denied (publickey): add the public key to GitHub and re-run"
        )
