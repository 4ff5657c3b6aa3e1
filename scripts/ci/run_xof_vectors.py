#!/usr/bin/env python3
"""Repo-local entry point for the XOF vector runner.

Equivalent to the installed ``xofvectors-run`` command.
"""

from __future__ import annotations

import os
import sys

# Allow invocation as `python3 scripts/ci/run_xof_vectors.py` without requiring callers
# to set PYTHONPATH.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from xofvectors.run_vectors import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
