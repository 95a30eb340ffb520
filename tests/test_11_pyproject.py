"""Tests for pyproject.toml and package installation."""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

PYPROJECT = Path(__file__).parent.parent / "pyproject.toml"


class TestPackageInstallation:
    """Test that the package is properly installed."""

    def test_version_defined(self):
        import tts_gateway
        assert isinstance(tts_gateway.__version__, str)
        assert tts_gateway.__version__

    def test_core_modules_importable(self):
        from tts_gateway.api import openai_compat, routes
        from tts_gateway.core import config, logging, metrics
        from tts_gateway.upstream import credentials, signature, synthesis, voices

        for module in (openai_compat, routes, config, logging, metrics,
                       credentials, signature, synthesis, voices):
            assert module is not None


class TestCLIEntryPoint:

    def test_cli_help_exits_zero(self):
        result = subprocess.run(
            [sys.executable, "-m", "tts_gateway.cli", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "tts-gateway CLI" in result.stdout


class TestPyprojectToml:

    @pytest.fixture
    def data(self):
        tomllib = pytest.importorskip("tomllib")
        return tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))

    def test_name(self, data):
        assert data["project"]["name"] == "tts-gateway"

    def test_dependencies(self, data):
        deps = data["project"]["dependencies"]
        dep_names = [d.split(">=")[0].split("[")[0] for d in deps]
        for name in ("fastapi", "uvicorn", "pydantic", "httpx", "PyYAML", "prometheus_client"):
            assert name in dep_names

    def test_console_script(self, data):
        assert data["project"]["scripts"]["tts-gateway"] == "tts_gateway.cli:main"
