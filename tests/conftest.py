"""
Pytest configuration and fixtures for the tag cloud tests.
"""

import copy
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import config


@pytest.fixture(autouse=True)
def restore_config():
    """Tests and the CLI mutate the config dictionaries; put them back afterwards."""
    saved = {
        name: copy.deepcopy(getattr(config, name))
        for name in ("ANALYSIS_CONFIG", "RENDER_CONFIG", "OUTPUT_CONFIG")
    }
    yield
    for name, value in saved.items():
        target = getattr(config, name)
        target.clear()
        target.update(value)


@pytest.fixture
def quiet():
    """Silence progress output for a test."""
    config.OUTPUT_CONFIG["verbose"] = False
    config.OUTPUT_CONFIG["timing_info"] = False


@pytest.fixture
def temp_output_path(tmp_path):
    """Output path without extension; the writer appends the format."""
    return str(tmp_path / "cloud")


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "cli: marks tests as CLI functionality tests")
