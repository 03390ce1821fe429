from __future__ import annotations

"""Redaction utility.

CONTRACT
- Inputs: captured tool output
- Outputs:
  - redacted text string
- Invariants:
  - Replaces known secrets (GitHub tokens, API keys) with [REDACTED]
  - Best-effort; does not guarantee all secrets are caught
- Failure:
  - None (returns original text when nothing matches)
"""

import re
from dataclasses import dataclass, field

DEFAULT_PATTERNS = [
    # Common token patterns (very rough; extend per repo via extra_patterns)
    re.compile(r"ghp_[A-Za-z0-9]{20,}"),
    re.compile(r"ghs_[A-Za-z0-9]{20,}"),
    re.compile(r"github_pat_[A-Za-z0-9_]{20,}"),
    re.compile(r"sk-[A-Za-z0-9]{20,}"),
]


@dataclass(frozen=True)
class Redactor:
    patterns: list[re.Pattern] = field(default_factory=lambda: list(DEFAULT_PATTERNS))

    def redact(self, text: str) -> str:
        out = text
        for pat in self.patterns:
            out = pat.sub("[REDACTED]", out)
        return out

    def with_patterns(self, extra: list[str]) -> Redactor:
        return Redactor(patterns=self.patterns + [re.compile(p) for p in extra])
