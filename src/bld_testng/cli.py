"""CLI commands for bld-testng."""

import logging
import shlex
import sys
from pathlib import Path

import click

from .config import BuildConfig
from .exceptions import ExitStatusError
from .operation import FailurePolicy, Parallel, TestNgOperation
from .suite import default_suite_xml


config_option = click.option(
    "-f",
    "--file",
    "config_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to bld-testng.yml",
)


def run_options(f):
    """Options shared by the commands that build a TestNG command line."""
    options = [
        config_option,
        click.option("--package", "packages", multiple=True, help="Package to run (repeatable)"),
        click.option("--suite", "suites", multiple=True, help="XML suite to run (repeatable)"),
        click.option("--method", "methods", multiple=True, help="Method to run (repeatable)"),
        click.option("--test-class", "test_classes", multiple=True, help="Test class to run (repeatable)"),
        click.option("--group", "groups", multiple=True, help="Group to run (repeatable)"),
        click.option("--exclude-group", "exclude_groups", multiple=True, help="Group to exclude (repeatable)"),
        click.option(
            "--parallel",
            type=click.Choice([p.value for p in Parallel]),
            help="Parallel mechanism",
        ),
        click.option(
            "--failure-policy",
            type=click.Choice([p.value for p in FailurePolicy]),
            help="Configuration failure policy",
        ),
        click.option("--thread-count", type=int, help="Number of threads for parallel runs"),
        click.option("-d", "--output-dir", type=click.Path(), help="Report directory"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def build_operation(
    config_file: str,
    packages: tuple[str, ...] = (),
    suites: tuple[str, ...] = (),
    methods: tuple[str, ...] = (),
    test_classes: tuple[str, ...] = (),
    groups: tuple[str, ...] = (),
    exclude_groups: tuple[str, ...] = (),
    parallel: str | None = None,
    failure_policy: str | None = None,
    thread_count: int | None = None,
    output_dir: str | None = None,
) -> TestNgOperation:
    """Load the configuration file and apply the command line overrides."""
    config = BuildConfig.from_file(config_file)
    op = TestNgOperation.from_config(config)

    op.packages(packages).suites(suites).methods(methods)
    if test_classes:
        op.test_class(test_classes)
    if groups:
        op.groups(groups)
    if exclude_groups:
        op.exclude_groups(exclude_groups)
    if parallel:
        op.parallel(parallel)
    if failure_policy:
        op.failure_policy(failure_policy)
    if thread_count is not None:
        op.thread_count(thread_count)
    if output_dir:
        op.directory(Path(output_dir))
    return op


@click.group()
@click.version_option(package_name="bld-testng")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level",
)
def main(log_level: str):
    """bld-testng - Run TestNG tests for a bld project."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@main.command()
@run_options
def run(**kwargs):
    """Run TestNG and exit with its status."""
    op = build_operation(**kwargs)

    click.echo("Running TestNG...")

    try:
        op.execute()
    except ExitStatusError as e:
        click.echo(click.style(f"Tests failed: {e}", fg="red"), err=True)
        sys.exit(e.exit_status)

    click.echo(click.style("All tests passed!", fg="green"))
    click.echo(f"Report: {op.report_directory()}")


@main.command()
@run_options
def command(**kwargs):
    """Print the TestNG command line without running it."""
    op = build_operation(**kwargs)

    try:
        args = op.construct_command()
    except ExitStatusError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(e.exit_status)
    finally:
        op.cleanup()

    click.echo(shlex.join(args))


@main.command()
@config_option
@click.option("--package", "packages", multiple=True, help="Package to include (repeatable)")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write the suite to this file")
def suite(config_file: str, packages: tuple[str, ...], output: str | None):
    """Generate the default suite for the configured packages."""
    op = TestNgOperation.from_config(BuildConfig.from_file(config_file)).packages(packages)

    if not op.packages_set:
        click.echo(click.style("At least one package is required.", fg="red"), err=True)
        sys.exit(1)

    xml = default_suite_xml(op.packages_set)
    if output:
        Path(output).write_text(xml, encoding="utf-8")
        click.echo(f"Suite written to {output}")
    else:
        click.echo(xml, nl=False)


if __name__ == "__main__":
    main()
