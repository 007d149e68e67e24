"""Session-wide test configuration: in-process storage, no background sweep."""

import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("RETENTION_SWEEP_ENABLED", "false")
