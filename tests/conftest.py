"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the
`src` directory to sys.path so `import ytcli` works.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temp dir and clear credential env vars."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("YOUTRACK_BASE_URL", raising=False)
    monkeypatch.delenv("YOUTRACK_TOKEN", raising=False)
    return tmp_path / "config" / "yt-cli" / "config.json"


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("YOUTRACK_BASE_URL", "https://yt.example.com/")
    monkeypatch.setenv("YOUTRACK_TOKEN", "perm:abc")


def make_response(status_code=200, payload=None, text=None):
    """Build a real requests.Response without touching the network."""
    resp = requests.Response()
    resp.status_code = status_code
    resp.url = "https://yt.example.com/api/test"
    if text is not None:
        resp._content = text.encode("utf-8")
    else:
        resp._content = json.dumps(payload).encode("utf-8")
    return resp


@pytest.fixture
def response():
    return make_response
