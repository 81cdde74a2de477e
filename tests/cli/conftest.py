"""Shared fixtures for CLI tests."""

import pytest
from click.testing import CliRunner

from brewpr.registry.types import ReleaseRecord


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and .env file."""
    for name in ("GITHUB_TOKEN", "BASE_BRANCH", "FORMULA_DIR", "DEBUG", "NPM_REGISTRY_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def release():
    return ReleaseRecord(
        name="tool",
        version="2.0.0",
        description="A command line tool",
        homepage="https://example.com/tool",
        license="MIT",
        tarball="https://registry.npmjs.org/tool/-/tool-2.0.0.tgz",
        bin={"tool": "./cli.js"},
    )
