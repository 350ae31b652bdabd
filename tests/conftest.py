"""Shared pytest fixtures and helpers."""

import base64
import json

import pytest

from valclip.local.lockfile import SessionDescriptor

LOCKFILE_TEXT = "Riot Client:1234:54321:s3cret:https"


def make_jwt(payload: dict) -> str:
    """Build an unsigned JWT-shaped token with the given payload."""
    segment = base64.urlsafe_b64encode(json.dumps(payload).encode()).rstrip(b"=")
    return f"eyJhbGciOiJSUzI1NiJ9.{segment.decode()}.c2lnbmF0dXJl"


@pytest.fixture
def descriptor():
    return SessionDescriptor(
        name="Riot Client", pid=1234, port=54321, password="s3cret", protocol="https"
    )


@pytest.fixture
def lockfile(tmp_path):
    path = tmp_path / "Config" / "lockfile"
    path.parent.mkdir()
    path.write_text(LOCKFILE_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def game_log(tmp_path):
    return tmp_path / "ShooterGame.log"


@pytest.fixture
def jwt():
    return make_jwt
