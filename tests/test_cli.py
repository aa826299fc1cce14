"""CLI tests."""

import subprocess
from pathlib import Path

from click.testing import CliRunner

from bld_testng.cli import main


def test_help():
    result = CliRunner().invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "run" in result.output
    assert "command" in result.output
    assert "suite" in result.output


def test_command_prints_command_line(config_file: Path):
    result = CliRunner().invoke(
        main, ["command", "-f", str(config_file), "--suite", "testng.xml", "--group", "fast"]
    )

    assert result.exit_code == 0
    assert "org.testng.TestNG" in result.output
    assert "-Xmx512m" in result.output
    assert "-groups fast" in result.output
    assert "-verbose 2" in result.output
    assert result.output.strip().endswith("testng.xml")


def test_command_removes_generated_suite(config_file: Path):
    result = CliRunner().invoke(main, ["command", "-f", str(config_file)])

    assert result.exit_code == 0
    suite_file = result.output.split()[-1]
    assert suite_file.endswith(".xml")
    assert not Path(suite_file).exists()


def test_command_configuration_error(tmp_path: Path):
    path = tmp_path / "bld-testng.yml"
    path.write_text("testng:\n  test_class: [com.example.FooTest]\n")

    result = CliRunner().invoke(main, ["command", "-f", str(path)])

    assert result.exit_code == 1
    assert "At least one package, method or XML suite is required." in result.output


def test_run_success(config_file: Path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", lambda args, cwd=None: subprocess.CompletedProcess(args, 0))

    result = CliRunner().invoke(main, ["run", "-f", str(config_file), "--thread-count", "2"])

    assert result.exit_code == 0
    assert "All tests passed!" in result.output


def test_run_failure_exit_status(config_file: Path, monkeypatch):
    monkeypatch.setattr(subprocess, "run", lambda args, cwd=None: subprocess.CompletedProcess(args, 2))

    result = CliRunner().invoke(main, ["run", "-f", str(config_file)])

    assert result.exit_code == 2
    assert "Tests failed" in result.output


def test_missing_config_file(tmp_path: Path):
    result = CliRunner().invoke(main, ["run", "-f", str(tmp_path / "missing.yml")])

    assert result.exit_code != 0


def test_suite_prints_xml(config_file: Path):
    result = CliRunner().invoke(main, ["suite", "-f", str(config_file), "--package", "org.sample"])

    assert result.exit_code == 0
    assert '<package name="com.example" />' in result.output
    assert '<package name="org.sample" />' in result.output


def test_suite_to_file(config_file: Path, tmp_path: Path):
    output = tmp_path / "testng.xml"

    result = CliRunner().invoke(main, ["suite", "-f", str(config_file), "-o", str(output)])

    assert result.exit_code == 0
    assert "bld Default Suite" in output.read_text()
