import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep real provider credentials out of tests."""
    for name in (
        "GROQ_API_KEY",
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "GOOGLE_API_KEY",
        "GOOGLE_CSE_ID",
        "IDEACRAFTER_STORE_IMPL",
        "IDEACRAFTER_PUBLIC_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
