from __future__ import annotations

"""Redaction utility.

CONTRACT
- Inputs: text strings, optional literal secrets (e.g. the resolved GitHub token)
- Outputs:
  - redacted text string
- Invariants:
  - Replaces known token shapes and every registered literal secret with [REDACTED]
  - Best-effort; does not guarantee all secrets are caught
- Failure:
  - None (returns original text when nothing matches)
"""

import re
from dataclasses import dataclass, field

PLACEHOLDER = "[REDACTED]"

DEFAULT_PATTERNS = [
    re.compile(r"ghp_[A-Za-z0-9]{20,}"),
    re.compile(r"gho_[A-Za-z0-9]{20,}"),
    re.compile(r"github_pat_[A-Za-z0-9_]{20,}"),
]


@dataclass(frozen=True)
class Redactor:
    patterns: list[re.Pattern] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    secrets: tuple[str, ...] = ()

    def with_secrets(self, *values: str | None) -> Redactor:
        extra = tuple(v for v in values if v)
        return Redactor(patterns=list(self.patterns), secrets=self.secrets + extra)

    def redact(self, text: str) -> str:
        out = text
        # Longest first so a secret containing another is masked whole.
        for secret in sorted(self.secrets, key=len, reverse=True):
            out = out.replace(secret, PLACEHOLDER)
        for pat in self.patterns:
            out = pat.sub(PLACEHOLDER, out)
        return out


DEFAULT_REDACTOR = Redactor()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Redact secrets from text")
    parser.add_argument("text", help="Text to redact")
    args = parser.parse_args()
    print(DEFAULT_REDACTOR.redact(args.text))
