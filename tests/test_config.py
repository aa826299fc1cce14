"""Configuration loading tests."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from bld_testng.config import BuildConfig, BuildProject


def test_from_file(config_file: Path, project_dir: Path):
    config = BuildConfig.from_file(config_file)

    assert Path(config.project.work_directory) == project_dir
    assert config.project.java_options == ["-Xmx512m"]
    assert config.testng.packages == ["com.example"]
    assert config.testng.verbose == 2


def test_empty_file(tmp_path: Path):
    path = tmp_path / "bld-testng.yml"
    path.write_text("")

    config = BuildConfig.from_file(path)

    assert config.project.build_directory == "build"
    assert Path(config.project.work_directory) == tmp_path


def test_unknown_testng_setting(tmp_path: Path):
    path = tmp_path / "bld-testng.yml"
    path.write_text("testng:\n  threads: 4\n")

    with pytest.raises(ValidationError):
        BuildConfig.from_file(path)


def test_invalid_parallel_mode(tmp_path: Path):
    path = tmp_path / "bld-testng.yml"
    path.write_text("testng:\n  parallel: suites\n")

    with pytest.raises(ValidationError):
        BuildConfig.from_file(path)


def test_project_directories(project_dir: Path):
    project = BuildProject(work_directory=str(project_dir))

    assert project.build_path() == project_dir / "build"
    assert project.build_main_path() == project_dir / "build" / "main"
    assert project.build_test_path() == project_dir / "build" / "test"


def test_custom_build_directories(tmp_path: Path):
    project = BuildProject(
        work_directory=str(tmp_path),
        build_directory="out",
        build_test_directory="/opt/classes/test",
    )

    assert project.build_main_path() == tmp_path / "out" / "main"
    assert project.build_test_path() == Path("/opt/classes/test")


def test_classpath_jars(project_dir: Path):
    project = BuildProject(work_directory=str(project_dir))

    assert project.test_classpath_jars() == [
        str(project_dir / "lib" / "test" / "jcommander.jar"),
        str(project_dir / "lib" / "test" / "testng.jar"),
    ]
    assert project.compile_classpath_jars() == [str(project_dir / "lib" / "compile" / "app-lib.jar")]
    assert project.provided_classpath_jars() == [str(project_dir / "lib" / "provided" / "servlet-api.jar")]


def test_missing_lib_directory(tmp_path: Path):
    assert BuildProject(work_directory=str(tmp_path)).test_classpath_jars() == []
