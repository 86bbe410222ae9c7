"""Pytest package configuration: keep logs and metrics out of the way of tests."""

from __future__ import annotations

import os
import tempfile

os.environ.setdefault("SPLICE_DISABLE_METRICS", "1")
os.environ.setdefault("SPLICE_LOGGING__LOG_DIR", tempfile.mkdtemp(prefix="splice-test-logs-"))
os.environ.setdefault("SPLICE_PROCESSING__TMP_DIR", tempfile.mkdtemp(prefix="splice-test-work-"))
