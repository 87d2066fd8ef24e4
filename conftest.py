import os
import shutil
from pathlib import Path

import pytest

TEST_DATA_DIR = Path("data-tests")

# backend.app builds a default app at import; keep it out of ./data.
os.environ.setdefault("DATA_DIR", str(TEST_DATA_DIR))


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe data-tests/ and drop the cached LLM client before every test."""
    from backend import deps

    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    deps.reset_llm()
    yield
    deps.reset_llm()
    # leave data-tests around after tests for inspection; CI can ignore it
