#!/usr/bin/env python3
"""Run the view_actions test suite in Qt offscreen mode.

Usage:
  python scripts/run_tests_offscreen.py [--timeout SECONDS] [--verbose] [--] [pytest args...]

Examples:
  python scripts/run_tests_offscreen.py tests/test_command_action.py::test_guard_property_controls_enablement
  python scripts/run_tests_offscreen.py -- -k event -q
"""

from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys


def main() -> int:
    p = argparse.ArgumentParser(description="Run pytest for view_actions with QT_QPA_PLATFORM=offscreen")
    p.add_argument("--timeout", type=int, default=120, help="Maximum seconds to allow the whole pytest run")
    p.add_argument("--verbose", action="store_true", help="Don't use -q (quiet)")
    p.add_argument("--log-level", default=None, help="Forwarded as VIEW_ACTIONS_LOG_LEVEL")
    p.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Additional pytest args")
    args = p.parse_args()

    env = os.environ.copy()
    env.setdefault("QT_QPA_PLATFORM", "offscreen")
    # Tests flip design mode themselves; an inherited override would skew the null-target defaults.
    env.pop("VIEW_ACTIONS_DESIGN_MODE", None)
    if args.log_level:
        env["VIEW_ACTIONS_LOG_LEVEL"] = args.log_level

    cmd = [sys.executable, "-m", "pytest"]
    if not args.verbose:
        cmd += ["-q", "-x", "--maxfail=1"]
    cmd.append(f"--timeout={min(60, args.timeout)}")
    cmd += [a for a in args.pytest_args if a != "--"]

    print("Running:", " ".join(shlex.quote(c) for c in cmd))
    try:
        completed = subprocess.run(cmd, env=env, check=False, timeout=args.timeout)
    except subprocess.TimeoutExpired:
        print(f"pytest run timed out after {args.timeout} seconds", file=sys.stderr)
        return 124
    return completed.returncode


if __name__ == "__main__":
    raise SystemExit(main())
