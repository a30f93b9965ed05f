"""
CLI tests using Typer's CliRunner.

Commands that need a hub get the test hub through a patched ``build_hub``.
"""

import pytest
from typer.testing import CliRunner

from tilehub import __version__
from tilehub.cli import utils
from tilehub.cli.app import app
from tilehub.core.fingerprint import fingerprint
from tilehub.core.models import SourceKind

from tests._support.fakes import ok_response

runner = CliRunner()
IDEA = "AI scheduling assistant for clinics"


@pytest.fixture
def patched_hub(hub, monkeypatch):
    monkeypatch.setattr(utils, "build_hub", lambda cache_backend=None: hub)
    return hub


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_fingerprint(self):
        result = runner.invoke(app, ["fingerprint", "  AI  Scheduling assistant for CLINICS "])
        assert result.exit_code == 0
        assert fingerprint(IDEA) in result.output

    def test_tiles_json(self):
        result = runner.invoke(app, ["tiles", "--json"])
        assert result.exit_code == 0
        assert '"market_size"' in result.output
        assert '"ttl_seconds": 900' in result.output


class TestBuild:
    def test_build_prints_table(self, patched_hub, fake_clients):
        fake_clients["reddit"]._responses = [
            ok_response("reddit", "I love this idea", "pricing looks bad", kind=SourceKind.SOCIAL)
        ]
        result = runner.invoke(app, ["build", IDEA, "-t", "sentiment"])
        assert result.exit_code == 0, result.output
        assert "ms" in result.output
        assert fake_clients["reddit"].call_count == 1

    def test_build_json(self, patched_hub):
        result = runner.invoke(app, ["build", IDEA, "-t", "sentiment", "--json"])
        assert result.exit_code == 0, result.output
        assert '"generated": [' in result.output
        assert fingerprint(IDEA) in result.output

    def test_short_idea_exits_1(self, patched_hub):
        result = runner.invoke(app, ["build", "ai"])
        assert result.exit_code == 1

    def test_invalidate(self, patched_hub, fake_clients):
        runner.invoke(app, ["build", IDEA, "-t", "sentiment"])
        result = runner.invoke(app, ["invalidate", IDEA])
        assert result.exit_code == 0
        assert "Removed" in result.output
