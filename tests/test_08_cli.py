"""Tests for the tts-gateway CLI."""
from __future__ import annotations

import json

import pytest

from conftest import AUDIO
from tts_gateway import cli
from tts_gateway.services.gateway import GatewayService


@pytest.fixture
def fake_service(monkeypatch, http_client, clock):
    """Route the CLI's GatewayService through the fake backend."""
    def factory(settings):
        return GatewayService(settings, client=http_client, clock=clock)

    monkeypatch.setattr(cli, "GatewayService", factory)


class TestDryRun:

    def test_dry_run(self, capsys):
        code = cli.main(["--text", "dry run test", "--dry-run"])
        assert code == 0
        out = capsys.readouterr().out
        assert "DRY_RUN_OK" in out
        assert '<prosody rate="0%" pitch="0%" volume="50">dry run test</prosody>' in out

    def test_dry_run_json(self, capsys):
        code = cli.main(["dry", "--dry-run", "--json", "--voice", "zh-CN-YunxiNeural", "--rate", "15"])
        assert code == 0
        lines = capsys.readouterr().out.strip().splitlines()
        payload = json.loads(lines[0])
        assert payload["dry_run"] is True
        item = payload["items"][0]
        assert item["voice"] == "zh-CN-YunxiNeural"
        assert 'rate="15%"' in item["ssml"]
        assert item["out"] == "out.mp3"
        assert lines[-1] == "DRY_RUN_OK"

    def test_batch_paths(self, capsys, tmp_path):
        inputs = tmp_path / "inputs.txt"
        inputs.write_text("one\n\ntwo\n", encoding="utf-8")
        out_dir = tmp_path / "out"
        code = cli.main(["--file", str(inputs), "--out", str(out_dir), "--dry-run", "--json",
                         "--format", "riff-24khz-16bit-mono-pcm"])
        assert code == 0
        payload = json.loads(capsys.readouterr().out.strip().splitlines()[0])
        outs = [i["out"] for i in payload["items"]]
        assert outs == [str(out_dir / "item_001.wav"), str(out_dir / "item_002.wav")]

    def test_no_text(self):
        with pytest.raises(SystemExit):
            cli.main(["--dry-run"])

    def test_file_and_text_conflict(self, tmp_path):
        inputs = tmp_path / "inputs.txt"
        inputs.write_text("one\n", encoding="utf-8")
        with pytest.raises(SystemExit):
            cli.main(["text", "--file", str(inputs), "--dry-run"])


class TestSynthesis:

    def test_writes_audio(self, fake_service, capsys, tmp_path):
        out = tmp_path / "hello.mp3"
        code = cli.main(["--text", "你好", "--out", str(out)])
        assert code == 0
        assert out.read_bytes() == AUDIO
        assert "CLI_OK" in capsys.readouterr().out

    def test_upstream_failure(self, fake_service, upstream, tmp_path, capsys):
        upstream.endpoint_status = 500
        code = cli.main(["--text", "hi", "--out", str(tmp_path / "x.mp3"), "--json"])
        assert code == 1
        payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert payload["error"]["code"] == "upstream_auth_failed"


class TestCatalog:

    def test_voices_locale_filter(self, fake_service, capsys):
        code = cli.main(["--voices", "--locale", "zh-CN", "--json"])
        assert code == 0
        voices = json.loads(capsys.readouterr().out.strip().splitlines()[0])
        assert [v["short_name"] for v in voices] == [
            "zh-CN-XiaoxiaoMultilingualNeural", "zh-CN-YunxiNeural",
        ]

    def test_multitts_to_file(self, fake_service, tmp_path):
        out = tmp_path / "speakers.yaml"
        code = cli.main(["--multitts", "--out", str(out)])
        assert code == 0
        doc = out.read_text(encoding="utf-8")
        assert doc.count("!!org.nobody.multitts.tts.speaker.Speaker") == 3
        assert "code: en-US-AriaNeural" in doc
