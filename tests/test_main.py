"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Configuration loading with priority (CLI > env > config)
- Transport selection
- Command dispatch
- Exit code handling
"""

from unittest.mock import patch

import pytest

from todoapp.config.exceptions import ConfigurationError
from todoapp.config.models import AppConfig
from todoapp.main import (
    EXIT_CONFIG_ERROR,
    EXIT_NOT_DELIVERED,
    EXIT_OK,
    build_parser,
    build_transport,
    load_runtime_config,
    main,
    parse_window,
)
from todoapp.notifications.transport import InMemoryTransport, SMTPTransport
from todoapp.persistence import PersonRepository, close_database, get_session, init_database

ENV_VARS = (
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_STARTTLS",
    "SMTP_AUTH",
    "MAIL_FROM_ADDRESS",
    "MAIL_FROM_NAME",
    "LOG_LEVEL",
    "DATABASE_URL",
)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Empty working directory with a clean environment and a throwaway database."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'todo.db'}")

    with patch("todoapp.main.load_dotenv"), patch("todoapp.main.configure_logging"):
        yield tmp_path


class TestParser:
    def test_global_flags(self):
        args = build_parser().parse_args(["--dry-run", "--log-level", "DEBUG", "seed"])

        assert args.dry_run is True
        assert args.log_level == "DEBUG"
        assert args.command == "seed"

    def test_test_email_requires_to(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["test-email"])

    def test_subcommand_options(self):
        parser = build_parser()

        assert parser.parse_args(["daily-summary", "--email", "a@example.com"]).email == "a@example.com"
        assert parser.parse_args(["due-reminders", "--window", "2h"]).window == "2h"
        assert parser.parse_args(["test-email", "--to", "a@example.com", "--html"]).html is True


class TestLoadRuntimeConfig:
    def test_log_level_priority(self, workdir, monkeypatch):
        (workdir / "config.yaml").write_text("logging:\n  level: WARNING\n")

        _, _, level = load_runtime_config(None, None, dry_run=True)
        assert level == "WARNING"

        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        _, _, level = load_runtime_config(None, None, dry_run=True)
        assert level == "ERROR"

        _, _, level = load_runtime_config(None, "DEBUG", dry_run=True)
        assert level == "DEBUG"

    def test_smtp_required_without_dry_run(self, workdir):
        with pytest.raises(ConfigurationError):
            load_runtime_config(None, None, dry_run=False)

    def test_missing_explicit_config_file(self, workdir):
        with pytest.raises(ConfigurationError):
            load_runtime_config(workdir / "missing.yaml", None, dry_run=True)


class TestBuildTransport:
    def test_dry_run_uses_memory(self, workdir):
        app_config, env_config, _ = load_runtime_config(None, None, dry_run=True)

        assert isinstance(build_transport(app_config, env_config, dry_run=True), InMemoryTransport)

    def test_memory_transport_from_config(self, workdir):
        (workdir / "config.yaml").write_text("email:\n  transport: memory\n")
        app_config, env_config, _ = load_runtime_config(None, None, dry_run=False)

        assert isinstance(build_transport(app_config, env_config, dry_run=False), InMemoryTransport)

    def test_smtp_transport_uses_config_timeout(self, workdir, monkeypatch):
        monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("MAIL_FROM_ADDRESS", "noreply@example.com")
        (workdir / "config.yaml").write_text("email:\n  timeout_seconds: 30\n")
        app_config, env_config, _ = load_runtime_config(None, None, dry_run=False)

        transport = build_transport(app_config, env_config, dry_run=False)

        assert isinstance(transport, SMTPTransport)
        assert transport.settings.timeout == 30

    def test_smtp_without_settings_raises(self, workdir):
        app_config, env_config, _ = load_runtime_config(None, None, dry_run=True)

        with pytest.raises(ConfigurationError):
            build_transport(AppConfig(), env_config, dry_run=False)


class TestParseWindow:
    def test_valid(self):
        assert parse_window("2h") == 7200
        assert parse_window("P1D") == 86400

    @pytest.mark.parametrize("value", ["soon", "1m", "30d"])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError):
            parse_window(value)


class TestMain:
    def test_test_email_dry_run(self, workdir, capsys):
        assert main(["--dry-run", "test-email", "--to", "alice@example.com"]) == EXIT_OK
        assert "Test email sent to alice@example.com" in capsys.readouterr().out

    def test_test_email_html_dry_run(self, workdir):
        assert main(["--dry-run", "test-email", "--to", "alice@example.com", "--html"]) == EXIT_OK

    def test_test_email_malformed_recipient(self, workdir, capsys):
        assert main(["--dry-run", "test-email", "--to", "bogus"]) == EXIT_NOT_DELIVERED
        assert "Failed to send test email to bogus" in capsys.readouterr().err

    def test_test_email_blank_recipient(self, workdir):
        assert main(["--dry-run", "test-email", "--to", " "]) == EXIT_CONFIG_ERROR

    def test_configuration_error(self, workdir, capsys):
        assert main(["seed"]) == EXIT_CONFIG_ERROR
        assert "Configuration Error" in capsys.readouterr().err

    def test_seed_dry_run(self, workdir, capsys):
        assert main(["--dry-run", "seed"]) == EXIT_OK
        assert "Created 3 people and 5 todos" in capsys.readouterr().out

        init_database(f"sqlite:///{workdir / 'todo.db'}")
        try:
            with get_session() as session:
                assert len(PersonRepository(session).find_all()) == 3
        finally:
            close_database()

    def test_seed_twice_is_noop(self, workdir, capsys):
        main(["--dry-run", "seed"])
        capsys.readouterr()

        assert main(["--dry-run", "seed"]) == EXIT_OK
        assert "already present" in capsys.readouterr().out

    def test_daily_summary(self, workdir, capsys):
        main(["--dry-run", "seed"])
        capsys.readouterr()

        assert main(["--dry-run", "daily-summary"]) == EXIT_OK
        assert "Daily summaries: 3 sent, 0 failed" in capsys.readouterr().out

    def test_daily_summary_unknown_email(self, workdir):
        main(["--dry-run", "seed"])

        assert main(["--dry-run", "daily-summary", "--email", "nobody@example.com"]) == EXIT_NOT_DELIVERED

    def test_due_reminders(self, workdir, capsys):
        main(["--dry-run", "seed"])
        capsys.readouterr()

        assert main(["--dry-run", "due-reminders", "--window", "3d"]) == EXIT_OK
        assert "Due-date reminders: 2 sent, 0 failed" in capsys.readouterr().out

    def test_due_reminders_invalid_window(self, workdir):
        assert main(["--dry-run", "due-reminders", "--window", "soon"]) == EXIT_CONFIG_ERROR

    def test_undelivered_seed_exit_code(self, workdir):
        with patch("todoapp.main.build_transport", return_value=InMemoryTransport(fail=True)):
            assert main(["--dry-run", "seed"]) == EXIT_NOT_DELIVERED

    def test_keyboard_interrupt(self, workdir):
        with patch("todoapp.main.load_runtime_config", side_effect=KeyboardInterrupt):
            assert main(["--dry-run", "seed"]) == EXIT_OK

    def test_unexpected_error(self, workdir):
        with patch("todoapp.main.init_database", side_effect=RuntimeError("disk full")):
            assert main(["--dry-run", "seed"]) == EXIT_CONFIG_ERROR
