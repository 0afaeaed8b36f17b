"""Pytest configuration and fixtures for azscrape tests.

CRITICAL: Keeps tests away from the real ~/.azscrape configuration and
from real Azure resources.
"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Strip AZSCRAPE_* variables and point the default config into tmp_path.

    Tests that need environment overrides set them explicitly.
    """
    for name in list(os.environ):
        if name.startswith("AZSCRAPE_") and name != "AZSCRAPE_TEST_MODE":
            monkeypatch.delenv(name, raising=False)

    from azscrape.config_manager import ConfigManager

    config_dir = tmp_path / ".azscrape"
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_dir / "config.toml")
    yield


@pytest.fixture(scope="session", autouse=True)
def prevent_real_azure_operations():
    """Mark test mode so nothing talks to real Azure by accident.

    Tests that need real Azure should explicitly check for RUN_E2E_TESTS=true.
    """
    os.environ["AZSCRAPE_TEST_MODE"] = "true"

    if os.environ.get("RUN_E2E_TESTS") == "true":
        print("\n" + "=" * 70)
        print("WARNING: RUN_E2E_TESTS=true - E2E tests will use REAL Azure resources!")
        print("=" * 70 + "\n")

    yield

    os.environ.pop("AZSCRAPE_TEST_MODE", None)
