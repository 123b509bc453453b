"""Tests for the dynfields command line interface."""

from uuid import uuid4

import pytest

from dynfields.cli import main as cli
from dynfields.exceptions import UserNotFoundError


class TestInitProject:
    def test_creates_files(self, tmp_path) -> None:
        cli.init_project(str(tmp_path))

        settings_text = (tmp_path / "settings.toml").read_text()
        assert 'api_prefix = "/api"' in settings_text
        assert (tmp_path / ".env.example").exists()
        assert (tmp_path / "data").is_dir()

    def test_keeps_existing_settings(self, tmp_path) -> None:
        (tmp_path / "settings.toml").write_text("port = 9000\n")
        cli.init_project(str(tmp_path))
        assert (tmp_path / "settings.toml").read_text() == "port = 9000\n"


class TestMain:
    def test_no_command_exits(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    def test_run_passes_options(self, monkeypatch) -> None:
        calls = []
        monkeypatch.setattr(cli, "run_server", lambda host, port: calls.append((host, port)))
        cli.main(["run", "--host", "0.0.0.0", "--port", "9001"])
        assert calls == [("0.0.0.0", 9001)]

    def test_export_writes_output(self, monkeypatch, capsys) -> None:
        user_id = uuid4()
        received = []

        async def fake_export(uid, export_format, include_inherited):
            received.append((uid, export_format, include_inherited))
            return "field,label,origin,value\n"

        monkeypatch.setattr(cli, "export_user", fake_export)
        cli.main(["export", str(user_id), "--format", "csv", "--personal-only"])

        assert received == [(user_id, "csv", False)]
        assert capsys.readouterr().out == "field,label,origin,value\n"

    def test_export_unknown_user(self, monkeypatch) -> None:
        async def fake_export(uid, export_format, include_inherited):
            raise UserNotFoundError(uid)

        monkeypatch.setattr(cli, "export_user", fake_export)
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["export", str(uuid4())])
        assert exc_info.value.code == 1
