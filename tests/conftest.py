"""Shared test fixtures for terraserver."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

INSTANCE_ID = "i-0113697bf55dbbd00"


@pytest.fixture
def instance_id() -> str:
    return INSTANCE_ID


@pytest.fixture
def tmp_home(tmp_path: Path, monkeypatch) -> Path:
    """Provide an empty terraserver home directory, with PASSWORD unset.

    Also moves into tmp_path so no stray .env file is picked up.
    """
    home = tmp_path / ".terraserver"
    home.mkdir()
    monkeypatch.delenv("PASSWORD", raising=False)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def ec2() -> MagicMock:
    """A stand-in boto3 EC2 client."""
    return MagicMock(name="ec2")
