from __future__ import annotations

"""Shell command execution.

CONTRACT
- Inputs: Command (str or list[str]), cwd, optional log path, env, timeout
- Outputs (required):
  - CmdResult(returncode, output, log_path)
- Invariants:
  - stdout and stderr are captured as ONE combined stream, in emission order
  - If log_path is given the combined output is also written there
  - Respects timeout_s (returncode 124 on expiry, never raises)
- Failure:
  - Returns CmdResult with exit code (does NOT raise on non-zero exit)
  - Raises ToolInvocationError if the process cannot be started at all
"""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from ..errors import ToolInvocationError

TIMEOUT_EXIT_CODE = 124
# POSIX shells report "not executable" / "not found" with these codes.
_SHELL_INVOCATION_CODES = {126: "command not executable", 127: "command not found"}


def which(cmd: str) -> str | None:
    for p in os.environ.get("PATH", "").split(os.pathsep):
        candidate = Path(p) / cmd
        if candidate.exists() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None


@dataclass(frozen=True)
class CmdResult:
    cmd: str
    returncode: int
    output: str
    elapsed_s: float
    log_path: Path | None = None


def _describe(cmd: str | list[str]) -> str:
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def run_cmd(
    cmd: str | list[str],
    cwd: Path,
    log_path: Path | None = None,
    env: dict[str, str] | None = None,
    timeout_s: float | None = None,
) -> CmdResult:
    """Run a command and capture its combined stdout/stderr.

    CONTRACT:
    - Accepts cmd as str (run with shell=True) or list[str] (run with shell=False).
    - Never raises for non-zero exit; caller inspects return code.
    - Raises ToolInvocationError when nothing could be run: missing cwd,
      missing or non-executable binary, or a shell reporting 126/127.
    """
    described = _describe(cmd)
    if not cwd.is_dir():
        raise ToolInvocationError(described, f"working directory does not exist: {cwd}")

    # Determine shell mode: string -> True, list -> False
    use_shell = isinstance(cmd, str)

    start_t = time.time()
    try:
        p = subprocess.run(
            cmd,
            cwd=str(cwd),
            shell=use_shell,
            env=(os.environ | env) if env else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            timeout=timeout_s,
        )
        rc = p.returncode
        raw = p.stdout or b""
    except subprocess.TimeoutExpired as e:
        rc = TIMEOUT_EXIT_CODE
        raw = (e.output or b"") + f"\nTimeout expired after {timeout_s}s.\n".encode("utf-8")
    except OSError as e:
        raise ToolInvocationError(described, e.strerror or str(e)) from e
    end_t = time.time()

    output = raw.decode("utf-8", errors="replace")

    if use_shell and rc in _SHELL_INVOCATION_CODES:
        reason = _SHELL_INVOCATION_CODES[rc]
        detail = output.strip()
        raise ToolInvocationError(described, f"{reason}: {detail}" if detail else reason)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.write_text(output, encoding="utf-8")

    return CmdResult(
        cmd=described,
        returncode=rc,
        output=output,
        elapsed_s=end_t - start_t,
        log_path=log_path,
    )


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Run shell commands and capture output")
    parser.add_argument("--cmd", required=True, help="Command to run")
    parser.add_argument("--cwd", default=".", help="Working directory")
    parser.add_argument("--timeout", type=int, default=10, help="Timeout in seconds")
    args = parser.parse_args()

    try:
        res = run_cmd(cmd=args.cmd, cwd=Path(args.cwd), timeout_s=args.timeout)
        print(f"Exit code: {res.returncode}")
        print(res.output)
        sys.exit(res.returncode)
    except ToolInvocationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
