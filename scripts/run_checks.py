#!/usr/bin/env python3
"""Run repository checks: ruff, pyright, and optional tests.

Exits non-zero on the first failing step so CI and local tooling can observe status.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys


def run(cmd: list[str], env: dict[str, str] | None = None) -> int:
    print("=>", " ".join(cmd))
    res = subprocess.run(cmd, check=False, env=env)
    return res.returncode


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--no-tests", action="store_true", help="Skip running pytest")
    parser.add_argument("--fix", action="store_true", help="Let ruff apply fixes")
    args = parser.parse_args()

    ruff = [sys.executable, "-m", "ruff", "check", "."]
    if args.fix:
        ruff.append("--fix")
    steps: list[tuple[str, list[str]]] = [
        ("ruff", ruff),
        ("ruff format", [sys.executable, "-m", "ruff", "format", "--check", "."]),
        # pyright may only be on PATH on Windows
        ("pyright", [sys.executable, "-m", "pyright"] if sys.platform != "win32" else ["pyright"]),
    ]
    for name, cmd in steps:
        rc = run(cmd)
        if rc != 0:
            print(f"{name} failed")
            return rc

    if not args.no_tests:
        env = os.environ.copy()
        env.setdefault("QT_QPA_PLATFORM", "offscreen")
        rc = run([sys.executable, "-m", "pytest", "-q"], env=env)
        if rc != 0:
            print("pytest failed")
            return rc

    print("All checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
