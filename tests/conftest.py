"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from bld_testng.config import BuildProject
from bld_testng.operation import TestNgOperation


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a bld project layout with a few jars."""
    for scope, jars in {
        "compile": ["app-lib.jar"],
        "provided": ["servlet-api.jar"],
        "test": ["testng.jar", "jcommander.jar"],
    }.items():
        lib = tmp_path / "lib" / scope
        lib.mkdir(parents=True)
        for jar in jars:
            (lib / jar).touch()
    (tmp_path / "build" / "main").mkdir(parents=True)
    (tmp_path / "build" / "test").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def project(project_dir: Path) -> BuildProject:
    return BuildProject(work_directory=str(project_dir))


@pytest.fixture
def operation(project: BuildProject):
    """An operation bound to the project; generated suites are removed afterwards."""
    op = TestNgOperation().from_project(project)
    yield op
    op.cleanup()


@pytest.fixture
def config_file(project_dir: Path) -> Path:
    """Write a minimal bld-testng.yml next to the project."""
    path = project_dir / "bld-testng.yml"
    path.write_text(
        "project:\n"
        "  java_options: [-Xmx512m]\n"
        "testng:\n"
        "  packages: [com.example]\n"
        "  verbose: 2\n"
    )
    return path
