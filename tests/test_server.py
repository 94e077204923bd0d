"""Tests for the server command-line entry point."""

from unittest.mock import patch

from app.server import DEFAULT_PORT, SHUTDOWN_TIMEOUT, main, parse_args


class TestParseArgs:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.delenv("HOST", raising=False)
        args = parse_args([])
        assert args.port == DEFAULT_PORT
        assert args.host == "0.0.0.0"

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert parse_args([]).port == 8080

    def test_port_flag_wins(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert parse_args(["--port", "9000"]).port == 9000


class TestMain:
    def test_runs_uvicorn_with_graceful_shutdown(self):
        with patch("app.server.uvicorn.run") as run:
            main(["--host", "127.0.0.1", "--port", "4000"])

        run.assert_called_once()
        kwargs = run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 4000
        assert kwargs["timeout_graceful_shutdown"] == SHUTDOWN_TIMEOUT
