"""
conftest.py
-----------
Shared test setup: keep the JSONL event logs out of the working tree.
Tests that exercise the structured logger pass their own tmp directory.
"""

import os

os.environ.setdefault("STRUCTURED_LOGGING", "false")
