"""Pytest configuration and fixtures for config package tests."""

import shutil
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp = tempfile.mkdtemp()
    yield Path(temp)
    shutil.rmtree(temp)


@pytest.fixture
def sample_config_dict():
    """Sample migration configuration dictionary."""
    return {
        "hosts": {
            "source": "http://localhost:9200",
            "target": "http://backup.example.com:9200",
        },
        "migration": {
            "source": {"index": "sale", "type": "details", "size": 50},
            "target": {"index": "sale_v2", "type": "details"},
            "bulk": {"action": "index", "batch_size": 500},
        },
        "transform": "examples.transforms:identity",
    }
