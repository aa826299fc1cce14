"""TestNG process operation.

``TestNgOperation`` collects TestNG options through chainable setters and
turns them into the command line that launches ``org.testng.TestNG`` in a
separate JVM. It is a mutable builder: every setter updates the instance in
place and returns it.
"""

import logging
import os
import shlex
import subprocess
from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import IO

from .config import BuildConfig, BuildProject
from .exceptions import ConfigurationError, ExitStatusError
from .suite import write_default_suite

logger = logging.getLogger(__name__)

TESTNG_MAIN_CLASS = "org.testng.TestNG"
TEST_CLASS_ARG = "-testclass"
DIRECTORY_ARG = "-d"
METHODS_ARG = "-methods"
SOURCE_DIR_SEPARATOR = ";"
LIST_SEPARATOR = ","
COMMAND_NOT_FOUND = 127

PathValue = str | os.PathLike | IO
Values = str | Iterable[str]


class Parallel(Enum):
    """Parallel mechanisms."""
    METHODS = "methods"
    TESTS = "tests"
    CLASSES = "classes"


class FailurePolicy(Enum):
    """Configuration failure policies."""
    SKIP = "skip"
    CONTINUE = "continue"


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _flatten(values: tuple) -> list[str]:
    """Flatten variadic arguments that may mix strings and iterables of strings."""
    flat = []
    for value in values:
        if value is None:
            continue
        if isinstance(value, (str, os.PathLike)) or hasattr(value, "read"):
            flat.append(value)
        else:
            flat.extend(v for v in value if v is not None)
    return flat


def _unique(values: Iterable[str]) -> list[str]:
    """Drop blank entries and duplicates, keeping the first-seen order."""
    return list(dict.fromkeys(v for v in values if not _is_blank(v)))


def _path_string(value: PathValue) -> str:
    """Plain strings are kept as given; path and file objects become absolute paths."""
    if isinstance(value, str):
        return value
    if isinstance(value, os.PathLike):
        return str(Path(value).absolute())
    return str(Path(value.name).absolute())


def _quote(value: str) -> str:
    return f'"{value}"'


class TestNgOperation:
    """Run tests with TestNG."""

    __test__ = False

    def __init__(self):
        self._options: dict[str, str] = {}
        self._packages: set[str] = set()
        self._suites: set[str] = set()
        self._methods: set[str] = set()
        self._test_classpath: dict[str, None] = {}
        self.project: BuildProject | None = None
        self.java_tool = "java"
        self.java_options: list[str] = []
        self.work_directory: Path | None = None
        self.temporary_files: list[Path] = []

    # -- project binding -------------------------------------------------

    def from_project(self, project: BuildProject) -> "TestNgOperation":
        """Configure the operation from a project.

        The report directory defaults to ``<build directory>/test-output``.
        """
        self.project = project
        self.java_tool = project.java_tool
        self.java_options = list(project.java_options)
        self.work_directory = project.work_path()
        return self.directory(str(project.build_path() / "test-output"))

    @classmethod
    def from_config(cls, config: BuildConfig) -> "TestNgOperation":
        """Create an operation from a parsed bld-testng.yml."""
        op = cls().from_project(config.project)
        for name, value in config.testng.model_dump(exclude_none=True).items():
            getattr(op, name)(value)
        return op

    # -- accessors -------------------------------------------------------

    @property
    def options(self) -> dict[str, str]:
        """The TestNG flags and their values, in the order they were first set."""
        return dict(self._options)

    @property
    def packages_set(self) -> set[str]:
        """The packages included in the run."""
        return set(self._packages)

    @property
    def suites_set(self) -> set[str]:
        """The XML suites to run."""
        return set(self._suites)

    @property
    def methods_set(self) -> set[str]:
        """The individual methods to run."""
        return set(self._methods)

    @property
    def test_classpath_set(self) -> set[str]:
        """The explicit classpath entries; they are passed to the JVM in the order first given."""
        return set(self._test_classpath)

    def option_set(self, flag: str) -> set[str]:
        """Return the entries stored for a list flag such as ``-groups``."""
        value = self._options.get(flag)
        if value is None:
            return set()
        separator = SOURCE_DIR_SEPARATOR if flag == "-sourcedir" else LIST_SEPARATOR
        return set(value.split(separator))

    # -- storage helpers -------------------------------------------------

    def _put_bool(self, flag: str, value: bool) -> "TestNgOperation":
        self._options[flag] = str(bool(value)).lower()
        return self

    def _put_int(self, flag: str, value: int, minimum: int = 0) -> "TestNgOperation":
        if value >= minimum:
            self._options[flag] = str(value)
        return self

    def _put_str(self, flag: str, value: str | None) -> "TestNgOperation":
        if not _is_blank(value):
            self._options[flag] = value
        return self

    def _put_list(self, flag: str, values: tuple, separator: str = LIST_SEPARATOR) -> "TestNgOperation":
        entries = _unique(_flatten(values))
        if entries:
            self._options[flag] = separator.join(entries)
        return self

    # -- boolean flags ---------------------------------------------------

    def always_run_listeners(self, is_always_run_listeners: bool) -> "TestNgOperation":
        """Should method invocation listeners be run even for skipped methods.

        Default is ``true``.
        """
        return self._put_bool("-alwaysrunlisteners", is_always_run_listeners)

    def fail_when_everything_skipped(self, is_fail_all_skipped: bool) -> "TestNgOperation":
        """Should TestNG fail execution if all tests were skipped and nothing was run."""
        return self._put_bool("-failwheneverythingskipped", is_fail_all_skipped)

    def generate_results_per_suite(self, results_per_suite: bool) -> "TestNgOperation":
        """Should TestNG generate results on a per suite basis by creating a sub directory
        for each suite and dumping results into it.

        Default is ``false``.
        """
        return self._put_bool("-generateResultsPerSuite", results_per_suite)

    def ignore_missed_test_names(self, is_ignore_missed_test_names: bool) -> "TestNgOperation":
        """Ignore missed test names given by ``test_names`` and continue to run existing tests, if any.

        Default is ``false``.
        """
        return self._put_bool("-ignoreMissedTestNames", is_ignore_missed_test_names)

    def include_all_data_driven_tests_when_skipping(self, is_include: bool) -> "TestNgOperation":
        """Should TestNG report all iterations of a data driven test as individual skips,
        in case of upstream failures.

        Default is ``false``.
        """
        return self._put_bool("-includeAllDataDrivenTestsWhenSkipping", is_include)

    def junit(self, is_junit: bool) -> "TestNgOperation":
        """Enables or disables the JUnit mode."""
        return self._put_bool("-junit", is_junit)

    def mixed(self, is_mixed: bool) -> "TestNgOperation":
        """Mixed mode autodetects the type of current test and runs it with the appropriate runner."""
        return self._put_bool("-mixed", is_mixed)

    def propagate_data_provider_failure_as_test_failure(self, is_propagate: bool) -> "TestNgOperation":
        """Should TestNG consider failures in data providers as test failures.

        Default is ``false``.
        """
        return self._put_bool("-propagateDataProviderFailureAsTestFailure", is_propagate)

    def use_default_listeners(self, is_default_listener: bool) -> "TestNgOperation":
        """Whether to use the default listeners. Default is ``true``."""
        return self._put_bool("-usedefaultlisteners", is_default_listener)

    def share_thread_pool_for_data_providers(self, share: bool) -> "TestNgOperation":
        """Should TestNG use a global shared thread pool (at suite level) for running data driven tests.

        TestNG only accepts this switch without ``false``, so nothing is stored unless ``share`` is true.
        """
        if share:
            self._options["-shareThreadPoolForDataProviders"] = "true"
        return self

    def use_global_thread_pool(self, use: bool) -> "TestNgOperation":
        """Should TestNG use a global shared thread pool (at suite level) for running regular and
        data driven tests.

        Like ``share_thread_pool_for_data_providers``, only stored when true.
        """
        if use:
            self._options["-useGlobalThreadPool"] = "true"
        return self

    # -- integer flags ---------------------------------------------------

    def data_provider_thread_count(self, count: int) -> "TestNgOperation":
        """The default maximum number of threads to use for data providers when running tests in parallel.

        Only takes effect if a parallel mode has been selected.
        """
        return self._put_int("-dataproviderthreadcount", count)

    def thread_count(self, count: int) -> "TestNgOperation":
        """The default maximum number of threads to use for running tests in parallel.

        Only takes effect if a parallel mode has been selected.
        """
        return self._put_int("-threadcount", count)

    def suite_thread_pool_size(self, pool_size: int) -> "TestNgOperation":
        """The size of the thread pool to use to run suites."""
        return self._put_int("-suitethreadpoolsize", pool_size)

    def port(self, port: int) -> "TestNgOperation":
        """The port number."""
        return self._put_int("-port", port, minimum=1)

    def log(self, level: int) -> "TestNgOperation":
        """The level of verbosity. See also ``verbose``."""
        return self._put_int("-log", level)

    def verbose(self, level: int) -> "TestNgOperation":
        """The level of verbosity. See also ``log``."""
        return self._put_int("-verbose", level)

    # -- string flags ----------------------------------------------------

    def dependency_injector_factory(self, injector_factory: str) -> "TestNgOperation":
        """The dependency injector factory implementation that TestNG should use."""
        return self._put_str("-dependencyinjectorfactory", injector_factory)

    def listener_comparator(self, listener_comparator: str) -> "TestNgOperation":
        """An implementation of ``ListenerComparator`` used to order listeners."""
        return self._put_str("-listenercomparator", listener_comparator)

    def listener_factory(self, listener_factory: str) -> "TestNgOperation":
        """The factory used to create TestNG listeners."""
        return self._put_str("-listenerfactory", listener_factory)

    def reporter(self, reporter: str) -> "TestNgOperation":
        """The extended configuration for a custom report listener."""
        return self._put_str("-reporter", reporter)

    def test_jar(self, jar: str) -> "TestNgOperation":
        """A jar file that contains test classes.

        If a ``testng.xml`` file is found at the root of that jar it is used,
        otherwise all the test classes found in the jar are considered test classes.
        """
        return self._put_str("-testjar", jar)

    def test_run_factory(self, factory: str) -> "TestNgOperation":
        """The factory used to create tests."""
        return self._put_str("-testrunfactory", factory)

    def thread_pool_factory_class(self, factory_class: str) -> "TestNgOperation":
        """The thread pool executor factory implementation that TestNG should use."""
        return self._put_str("-threadpoolfactoryclass", factory_class)

    def suite_name(self, name: str) -> "TestNgOperation":
        """The default name of the test suite, if not specified in the suite definition or source code."""
        if not _is_blank(name):
            self._options["-suitename"] = _quote(name)
        return self

    def test_name(self, name: str) -> "TestNgOperation":
        """The default name of the test, if not specified in the suite definition or source code."""
        if not _is_blank(name):
            self._options["-testname"] = _quote(name)
        return self

    def parallel(self, mechanism: Parallel | str) -> "TestNgOperation":
        """The default mechanism used to determine how to use parallel threads when running tests.

        If not set, tests are not run in parallel.
        """
        if isinstance(mechanism, str):
            if _is_blank(mechanism):
                return self
            mechanism = Parallel(mechanism.strip().lower())
        self._options["-parallel"] = mechanism.value
        return self

    def failure_policy(self, policy: FailurePolicy | str) -> "TestNgOperation":
        """Whether TestNG should continue to execute the remaining tests in the suite,
        or skip them, if a ``@Before*`` method fails.
        """
        if isinstance(policy, str):
            if _is_blank(policy):
                return self
            policy = FailurePolicy(policy.strip().lower())
        self._options["-configfailurepolicy"] = policy.value
        return self

    # -- list flags ------------------------------------------------------

    def groups(self, *group: Values) -> "TestNgOperation":
        """The groups to run, e.g. ``"windows", "linux", "regression"``."""
        return self._put_list("-groups", group)

    def exclude_groups(self, *group: Values) -> "TestNgOperation":
        """The groups to exclude from this run."""
        return self._put_list("-excludegroups", group)

    def listener(self, *listener: Values) -> "TestNgOperation":
        """Classes implementing ``ITestListener`` or ``ISuiteListener``."""
        return self._put_list("-listener", listener)

    def method_selectors(self, *selector: Values) -> "TestNgOperation":
        """Classes implementing ``IMethodSelector``, e.g. ``"com.example.Selector1:3"``."""
        return self._put_list("-methodselectors", selector)

    def object_factory(self, *factory: Values) -> "TestNgOperation":
        """Classes implementing ``ITestRunnerFactory``."""
        return self._put_list("-objectfactory", factory)

    def override_included_methods(self, *method: Values) -> "TestNgOperation":
        """Methods to run even when they are excluded by group selection."""
        return self._put_list("-overrideincludedmethods", method)

    def spi_listeners_to_skip(self, *listener_to_skip: Values) -> "TestNgOperation":
        """Fully qualified class names of listeners that should not be wired in via service loaders."""
        return self._put_list("-spilistenerstoskip", listener_to_skip)

    def test_class(self, *a_class: Values) -> "TestNgOperation":
        """The test classes to run, e.g. ``"org.foo.Test1", "org.foo.Test2"``."""
        return self._put_list(TEST_CLASS_ARG, a_class)

    def test_names(self, *name: Values) -> "TestNgOperation":
        """Only tests defined in a ``<test>`` tag matching one of these names will be run."""
        entries = _unique(_flatten(name))
        if entries:
            self._options["-testnames"] = LIST_SEPARATOR.join(_quote(n) for n in entries)
        return self

    # -- path flags ------------------------------------------------------

    def directory(self, directory_path: PathValue) -> "TestNgOperation":
        """The directory where the reports will be generated.

        Default is ``<build directory>/test-output``.
        """
        if directory_path is None:
            return self
        return self._put_str(DIRECTORY_ARG, _path_string(directory_path))

    def source_dir(self, *directory: PathValue | Iterable[PathValue]) -> "TestNgOperation":
        """The directories where javadoc annotated test sources are."""
        paths = [_path_string(d) for d in _flatten(directory)]
        return self._put_list("-sourcedir", (paths,), separator=SOURCE_DIR_SEPARATOR)

    def xml_path_in_jar(self, path: PathValue) -> "TestNgOperation":
        """The path to a valid XML file inside the test jar, e.g. ``"resources/testng.xml"``.

        Ignored unless a test jar is specified.
        """
        if path is None:
            return self
        return self._put_str("-xmlpathinjar", _path_string(path))

    # -- accumulating collections ---------------------------------------

    def packages(self, *name: Values) -> "TestNgOperation":
        """Packages to include in this run, e.g. ``"com.example", "test.sample.*"``.

        A package ending with ``.*`` includes its sub-packages.
        """
        self._packages.update(_unique(_flatten(name)))
        return self

    def suites(self, *suite: Values) -> "TestNgOperation":
        """XML suites to run, e.g. ``"testng.xml", "testng2.xml"``."""
        self._suites.update(_unique(_flatten(suite)))
        return self

    def methods(self, *method: Values) -> "TestNgOperation":
        """Individual methods to run, e.g. ``"com.example.Foo.f1", "com.example.Bar.f2"``."""
        self._methods.update(_unique(_flatten(method)))
        return self

    def test_classpath(self, *entry: Values) -> "TestNgOperation":
        """Classpath entries used to run the tests, replacing the project classpath."""
        self._test_classpath.update(dict.fromkeys(_unique(_flatten(entry))))
        return self

    # -- command ---------------------------------------------------------

    def _classpath(self) -> str:
        if self._test_classpath:
            return os.pathsep.join(self._test_classpath)

        project = self.project
        entries = [
            *project.test_classpath_jars(),
            *project.compile_classpath_jars(),
            *project.provided_classpath_jars(),
            str(project.build_main_path()),
            str(project.build_test_path()),
        ]
        return os.pathsep.join(entries)

    def construct_command(self, log: logging.Logger | None = None) -> list[str]:
        """Build the command list used to launch TestNG.

        When neither suites nor test classes are configured, a default suite
        for the configured packages is written to a temporary file; its path
        is recorded in ``temporary_files`` and should be removed with
        ``cleanup`` once the process has finished.
        """
        log = log or logger

        if self.project is None:
            log.error("A project must be specified.")
            raise ConfigurationError("A project must be specified.")
        if not self._packages and not self._suites and not self._methods:
            log.error("At least one package, method or XML suite is required.")
            raise ConfigurationError("At least one package, method or XML suite is required.")

        if DIRECTORY_ARG not in self._options:
            self._options[DIRECTORY_ARG] = str(self.project.build_path() / "test-output")

        args = [self.java_tool, *self.java_options, "-cp", self._classpath(), TESTNG_MAIN_CLASS]

        for flag, value in self._options.items():
            args.extend([flag, value])

        if self._suites:
            args.extend(sorted(self._suites))
        elif TEST_CLASS_ARG not in self._options:
            suite_file = write_default_suite(self._packages)
            self.temporary_files.append(suite_file)
            args.append(str(suite_file))

        if self._methods:
            args.extend([METHODS_ARG, LIST_SEPARATOR.join(sorted(self._methods))])

        log.info(shlex.join(args))
        log.info("Report will be saved in file://%s", self.report_directory())

        return args

    def report_directory(self) -> Path | None:
        """The absolute report directory, as seen from the directory TestNG runs in."""
        directory = self._options.get(DIRECTORY_ARG)
        if directory is None:
            return None
        path = Path(directory)
        if not path.is_absolute() and self.work_directory is not None:
            path = Path(self.work_directory) / path
        return path.absolute()

    def cleanup(self) -> None:
        """Delete the suite files written by ``construct_command``."""
        while self.temporary_files:
            self.temporary_files.pop().unlink(missing_ok=True)

    def execute(self, log: logging.Logger | None = None) -> None:
        """Run TestNG and raise ``ExitStatusError`` if it does not succeed."""
        log = log or logger
        args = self.construct_command(log)
        try:
            if self.work_directory is not None and not Path(self.work_directory).is_dir():
                log.error("Work directory not found: %s", self.work_directory)
                raise ConfigurationError(f"Work directory not found: {self.work_directory}")
            result = subprocess.run(args, cwd=self.work_directory)
        except FileNotFoundError as e:
            log.error("Java executable not found: %s", args[0])
            raise ExitStatusError(COMMAND_NOT_FOUND, f"Java executable not found: '{args[0]}'") from e
        finally:
            self.cleanup()

        if result.returncode != 0:
            raise ExitStatusError(result.returncode)
