from pathlib import Path

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _run_from_repo_root(monkeypatch):
    # Tests reference fixtures as examples/<name>, relative to the repo root.
    monkeypatch.chdir(REPO_ROOT)
