"""Tests for CLI parsing and the stdio entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from country_mcp import cli


class TestParser:
    def test_serve_args(self) -> None:
        args = cli._build_parser().parse_args(
            ["serve", "--host", "127.0.0.1", "--port", "9001", "--log-level", "debug"]
        )
        assert args.command == "serve"
        assert args.host == "127.0.0.1"
        assert args.port == 9001
        assert args.log_level == "debug"
        assert args.func is cli._cmd_serve

    def test_stdio_args(self) -> None:
        args = cli._build_parser().parse_args(["stdio", "--config", "c.yaml"])
        assert args.command == "stdio"
        assert args.config == "c.yaml"
        assert args.func is cli._cmd_stdio

    def test_no_command_exits(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    @pytest.mark.parametrize("port", ["0", "70000", "-1", "http"])
    def test_port_out_of_range_rejected(self, port: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli._build_parser().parse_args(["serve", "--port", port])
        assert exc_info.value.code == 2

    def test_port_bounds_accepted(self) -> None:
        parser = cli._build_parser()
        assert parser.parse_args(["serve", "--port", "1"]).port == 1
        assert parser.parse_args(["serve", "--port", "65535"]).port == 65535


class TestStdioCommand:
    def test_fatal_error_exits_nonzero(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        async def boom(config) -> None:
            raise RuntimeError("stdin unavailable")

        with patch("country_mcp.cli.setup_logging", return_value=("x.log", "INFO")), patch(
            "country_mcp.stdio.run_stdio", boom
        ):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["stdio"])
        assert exc_info.value.code == 1

    def test_console_setting_reaches_logging(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("COUNTRY_MCP_CONFIG", raising=False)
        (tmp_path / "config.yaml").write_text("logging:\n  console: false\n", encoding="utf-8")

        async def quiet(config) -> None:
            return None

        with patch(
            "country_mcp.cli.setup_logging", return_value=("x.log", "INFO")
        ) as mock_setup, patch("country_mcp.stdio.run_stdio", quiet):
            cli.main(["stdio"])

        assert mock_setup.call_args.kwargs["console"] is False


class TestStatusInfo:
    def test_wildcard_host_shown_as_localhost(self) -> None:
        from country_mcp.display.console import gen_status_info

        info = gen_status_info("0.0.0.0", 8000, "logs/x.log", "INFO")
        assert info["sse_url"] == "http://localhost:8000/mcp"
        assert info["post_url"] == "http://localhost:8000/mcp/messages?sessionId="
        assert info["health_url"] == "http://localhost:8000/health"

    def test_banner_printed(self, capsys: pytest.CaptureFixture) -> None:
        from country_mcp.display.console import disp_console_status, gen_status_info

        disp_console_status(gen_status_info("127.0.0.1", 9000, "x.log", "DEBUG"))
        out = capsys.readouterr().out
        assert "MCP Server listening on http://127.0.0.1:9000" in out
        assert "GET http://127.0.0.1:9000/mcp" in out
