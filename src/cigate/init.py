from __future__ import annotations

"""Template initializer.

CONTRACT
- Inputs: Repo path
- Outputs (required):
  - Writes .cigate/gates.yaml
- Invariants:
  - Creates .cigate directory if missing
  - Does not overwrite existing files (by default)
- Failure:
  - Raises OSError on permission issues
"""

from pathlib import Path

from .config import DEFAULT_CONFIG_PATH
from .util.paths import copy_template


def write_templates(repo: Path, force: bool = False) -> Path | None:
    """Write the starter gates file. Returns its path, or None if it already existed."""
    dest = repo / DEFAULT_CONFIG_PATH
    if copy_template("gates.yaml", dest, overwrite=force):
        return dest
    return None
