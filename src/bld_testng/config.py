"""Configuration models for bld-testng.yml parsing."""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field


class BuildProject(BaseModel):
    """Layout of the Java project whose tests are run.

    Relative directories are resolved against ``work_directory``.
    """
    work_directory: str = "."
    build_directory: str = "build"
    build_main_directory: str | None = None
    build_test_directory: str | None = None
    lib_compile_directory: str = "lib/compile"
    lib_provided_directory: str = "lib/provided"
    lib_test_directory: str = "lib/test"
    java_tool: str = "java"
    java_options: list[str] = Field(default_factory=list)

    def _resolve(self, path: str) -> Path:
        p = Path(path)
        if not p.is_absolute():
            p = Path(self.work_directory) / p
        return p.absolute()

    def work_path(self) -> Path:
        return Path(self.work_directory).absolute()

    def build_path(self) -> Path:
        return self._resolve(self.build_directory)

    def build_main_path(self) -> Path:
        if self.build_main_directory:
            return self._resolve(self.build_main_directory)
        return self.build_path() / "main"

    def build_test_path(self) -> Path:
        if self.build_test_directory:
            return self._resolve(self.build_test_directory)
        return self.build_path() / "test"

    def _jars(self, directory: str) -> list[str]:
        lib_dir = self._resolve(directory)
        if not lib_dir.is_dir():
            return []
        return [str(jar) for jar in sorted(lib_dir.glob("*.jar"))]

    def compile_classpath_jars(self) -> list[str]:
        """Jars of the compile scope."""
        return self._jars(self.lib_compile_directory)

    def provided_classpath_jars(self) -> list[str]:
        """Jars of the provided scope."""
        return self._jars(self.lib_provided_directory)

    def test_classpath_jars(self) -> list[str]:
        """Jars of the test scope."""
        return self._jars(self.lib_test_directory)


class TestNgSettings(BaseModel):
    """TestNG options, named after the operation setters they are applied with."""
    __test__ = False

    model_config = ConfigDict(extra="forbid")

    packages: list[str] | None = None
    suites: list[str] | None = None
    methods: list[str] | None = None
    test_class: list[str] | None = None
    test_classpath: list[str] | None = None
    groups: list[str] | None = None
    exclude_groups: list[str] | None = None
    listener: list[str] | None = None
    method_selectors: list[str] | None = None
    object_factory: list[str] | None = None
    override_included_methods: list[str] | None = None
    spi_listeners_to_skip: list[str] | None = None
    source_dir: list[str] | None = None
    test_names: list[str] | None = None

    directory: str | None = None
    xml_path_in_jar: str | None = None
    test_jar: str | None = None
    suite_name: str | None = None
    test_name: str | None = None
    reporter: str | None = None
    listener_comparator: str | None = None
    listener_factory: str | None = None
    dependency_injector_factory: str | None = None
    test_run_factory: str | None = None
    thread_pool_factory_class: str | None = None

    parallel: Literal["methods", "tests", "classes"] | None = None
    failure_policy: Literal["skip", "continue"] | None = None

    thread_count: int | None = None
    data_provider_thread_count: int | None = None
    suite_thread_pool_size: int | None = None
    port: int | None = None
    log: int | None = None
    verbose: int | None = None

    always_run_listeners: bool | None = None
    fail_when_everything_skipped: bool | None = None
    generate_results_per_suite: bool | None = None
    ignore_missed_test_names: bool | None = None
    include_all_data_driven_tests_when_skipping: bool | None = None
    junit: bool | None = None
    mixed: bool | None = None
    propagate_data_provider_failure_as_test_failure: bool | None = None
    share_thread_pool_for_data_providers: bool | None = None
    use_default_listeners: bool | None = None
    use_global_thread_pool: bool | None = None


class BuildConfig(BaseModel):
    """Main bld-testng.yml configuration model."""
    project: BuildProject = Field(default_factory=BuildProject)
    testng: TestNgSettings = Field(default_factory=TestNgSettings)

    @classmethod
    def from_file(cls, path: str | Path) -> "BuildConfig":
        """Load configuration from a YAML file.

        A relative ``project.work_directory`` is taken relative to the file.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        config = cls(**data)
        work_dir = Path(config.project.work_directory)
        if not work_dir.is_absolute():
            config.project.work_directory = str((Path(path).parent / work_dir).absolute())
        return config
