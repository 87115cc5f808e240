"""
Unit tests for the command-line interface.
"""

import json
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from table_merge.cli import main
from table_merge.cli.commands import EXIT_CONFIG, EXIT_FAILED, EXIT_OK, cmd_report, cmd_run
from table_merge.cli.config import config_from_args
from table_merge.cli.parser import create_parser
from table_merge.errors import ConfigError, SchemaError
from table_merge.models import ConflictStrategy, MergeReport
from table_merge.report import export_report_json

RUN_ARGS = [
    "run",
    "--dsn", "postgresql://localhost/test",
    "--table-a", "customers_a",
    "--table-b", "customers_b",
    "--table-c", "customers_c",
    "--key-fields", "code",
]

REPORT = MergeReport(
    total_a=3, total_b=2, total_c=4, exact_match=1, only_in_a=1, only_in_b=1, conflict=1,
    null_auto_filled=2, conflict_use_a=0, conflict_use_b=1,
    started_at=datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC),
    finished_at=datetime(2024, 1, 1, 12, 0, 5, tzinfo=UTC),
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DSN", "TABLE_A", "TABLE_B", "TABLE_C", "KEY_FIELDS", "IGNORE_FIELDS_A",
                 "IGNORE_FIELDS_B", "STRATEGY", "BATCH_SIZE"):
        monkeypatch.delenv(f"MERGE_{name}", raising=False)


def parse(*argv):
    return create_parser().parse_args(list(argv))


class TestParser:
    """Test argument parsing."""

    def test_run_defaults(self):
        args = parse(*RUN_ARGS)

        assert args.command == "run"
        assert args.format == "console"
        assert args.strategy is None
        assert args.log_level == "INFO"

    def test_rejects_unknown_strategy(self):
        with pytest.raises(SystemExit):
            parse(*RUN_ARGS, "--strategy", "prefer-c")

    def test_report_requires_input(self):
        with pytest.raises(SystemExit):
            parse("report")


class TestConfigFromArgs:
    """Test configuration assembly."""

    def test_from_arguments(self):
        config = config_from_args(parse(*RUN_ARGS, "--key-fields", "code, region",
                                        "--ignore-a", "updated_at", "--strategy", "prefer-b",
                                        "--batch-size", "100"))

        assert config.key_fields == ("code", "region")
        assert config.ignore_fields_a == ("updated_at",)
        assert config.ignore_fields_b == ()
        assert config.strategy is ConflictStrategy.PREFER_B
        assert config.batch_size == 100

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("MERGE_DSN", "postgresql://db/test")
        monkeypatch.setenv("MERGE_TABLE_A", "a")
        monkeypatch.setenv("MERGE_TABLE_B", "b")
        monkeypatch.setenv("MERGE_TABLE_C", "c")
        monkeypatch.setenv("MERGE_KEY_FIELDS", "code")
        monkeypatch.setenv("MERGE_IGNORE_FIELDS_B", "note,updated_at")
        monkeypatch.setenv("MERGE_STRATEGY", "interactive")
        monkeypatch.setenv("MERGE_BATCH_SIZE", "50")

        config = config_from_args(parse("run"))

        assert (config.table_a, config.table_b, config.table_c) == ("a", "b", "c")
        assert config.ignore_fields_b == ("note", "updated_at")
        assert config.strategy is ConflictStrategy.INTERACTIVE
        assert config.batch_size == 50

    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("MERGE_TABLE_A", "from_env")

        assert config_from_args(parse(*RUN_ARGS)).table_a == "customers_a"

    def test_missing_settings_listed(self):
        with pytest.raises(ConfigError) as exc_info:
            config_from_args(parse("run", "--dsn", "x"))

        message = str(exc_info.value)
        assert "--table-a / MERGE_TABLE_A" in message
        assert "--key-fields / MERGE_KEY_FIELDS" in message
        assert "--dsn" not in message

    def test_invalid_batch_size(self, monkeypatch):
        monkeypatch.setenv("MERGE_BATCH_SIZE", "lots")

        with pytest.raises(ConfigError, match="batch size"):
            config_from_args(parse(*RUN_ARGS))

    def test_output_table_must_differ(self):
        with pytest.raises(ConfigError):
            config_from_args(parse(*RUN_ARGS, "--table-c", "customers_a"))


class TestCmdRun:
    """Test the run command."""

    def test_success_prints_report(self, capsys):
        with patch("table_merge.cli.commands.MergeEngine") as engine:
            engine.return_value.run.return_value = REPORT

            assert cmd_run(parse(*RUN_ARGS)) == EXIT_OK

        assert "MERGE REPORT" in capsys.readouterr().out

    def test_json_report_written(self, tmp_path):
        output = tmp_path / "out" / "report.json"
        with patch("table_merge.cli.commands.MergeEngine") as engine:
            engine.return_value.run.return_value = REPORT

            assert cmd_run(parse(*RUN_ARGS, "--format", "json", "--output", str(output))) == EXIT_OK

        assert json.loads(output.read_text())["total_c"] == 4

    def test_merge_failure(self):
        with patch("table_merge.cli.commands.MergeEngine") as engine:
            engine.return_value.run.side_effect = SchemaError("No usable columns", table="customers_b")

            assert cmd_run(parse(*RUN_ARGS)) == EXIT_FAILED

    def test_config_failure(self):
        with patch("table_merge.cli.commands.MergeEngine") as engine:
            assert cmd_run(parse("run")) == EXIT_CONFIG

        engine.assert_not_called()

    def test_file_format_requires_output(self):
        assert cmd_run(parse(*RUN_ARGS, "--format", "csv")) == EXIT_CONFIG


class TestCmdReport:
    """Test the report command."""

    def test_renders_saved_report(self, tmp_path, capsys):
        path = tmp_path / "report.json"
        export_report_json(REPORT, str(path))

        assert cmd_report(parse("report", "--input", str(path))) == EXIT_OK
        assert "Only in B" in capsys.readouterr().out

    def test_converts_to_csv(self, tmp_path):
        path = tmp_path / "report.json"
        output = tmp_path / "report.csv"
        export_report_json(REPORT, str(path))

        assert cmd_report(parse("report", "--input", str(path), "--format", "csv",
                                "--output", str(output))) == EXIT_OK
        assert "conflict_use_b,1" in output.read_text()

    def test_missing_input(self, tmp_path):
        assert cmd_report(parse("report", "--input", str(tmp_path / "none.json"))) == EXIT_FAILED

    def test_malformed_input(self, tmp_path):
        path = tmp_path / "report.json"
        path.write_text("{not json")

        assert cmd_report(parse("report", "--input", str(path))) == EXIT_FAILED


class TestMain:
    """Test the entry point."""

    def test_exit_code_propagates(self):
        with patch("table_merge.cli.setup_logging"), \
                patch("table_merge.cli.cmd_run", return_value=EXIT_FAILED):
            with pytest.raises(SystemExit) as exc_info:
                main(RUN_ARGS)

        assert exc_info.value.code == EXIT_FAILED

    def test_no_command_prints_help(self, capsys):
        with patch("table_merge.cli.setup_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert "usage" in capsys.readouterr().out
