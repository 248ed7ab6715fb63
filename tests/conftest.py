"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path (for 'asbuilt.*' imports without an install)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _reset_logging():
    """Keep verbosity and log subscribers from leaking between tests."""
    from asbuilt.core import logging as core_logging

    core_logging.set_verbosity(core_logging.VerbosityLevel.NORMAL)
    core_logging.clear_subscribers()
    yield
    core_logging.set_verbosity(core_logging.VerbosityLevel.NORMAL)
    core_logging.clear_subscribers()


@pytest.fixture(autouse=True)
def _clear_asbuilt_env(monkeypatch):
    """Host environment must not leak engine settings into tests."""
    import os

    for key in list(os.environ):
        if key.startswith("ASBUILT_"):
            monkeypatch.delenv(key)


@pytest.fixture
def pge_config_path():
    """Path to the PG&E-style utility configuration fixture."""
    return FIXTURES_DIR / "pge.yaml"


@pytest.fixture
def config_resolver(tmp_path):
    """ConfigResolver isolated from user and system config files.

    Args:
        tmp_path: pytest temporary directory

    Returns:
        ConfigResolver instance
    """
    from asbuilt.core.config import ConfigResolver

    return ConfigResolver(
        user_config_path=tmp_path / "user.yaml",
        system_config_path=tmp_path / "system.yaml",
    )


@pytest.fixture
def pge_config(pge_config_path, config_resolver):
    """Loaded PG&E-style UtilityConfiguration."""
    from asbuilt.core.models import load_utility_configuration

    return load_utility_configuration(pge_config_path, config_resolver)


@pytest.fixture
def simple_config():
    """Minimal configuration with a single EC corrective work type."""
    from asbuilt.core.models import UtilityConfiguration

    return UtilityConfiguration.from_dict(
        {
            "utilityCode": "TEST",
            "workTypes": [{"code": "ec_corrective", "requiredDocs": ["ec_tag", "ccsc"]}],
        }
    )


@pytest.fixture
def job_data():
    """JSON-shaped job record as a host would supply it."""
    return {
        "_id": "job-42",
        "pmNumber": "35589054",
        "notificationNumber": "119080350",
        "woNumber": "WO-7781",
        "address": "1200 Main St",
        "city": "Fresno",
        "description": "Replace pole and transformer",
        "jobScope": "OH",
    }


@pytest.fixture
def user_data():
    return {
        "_id": "user-7",
        "name": "Dana Foreman",
        "email": "dfor@utility.example",
    }


@pytest.fixture
def context_data(job_data, user_data):
    return {"job": job_data, "user": user_data, "timesheetHours": 8.5}
