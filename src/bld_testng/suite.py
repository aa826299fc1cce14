"""Default TestNG suite generation."""

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from pathlib import Path

from .exceptions import SuiteWriteError

logger = logging.getLogger(__name__)

SUITE_NAME = "bld Default Suite"
TEST_NAME = "All Packages"
SUITE_VERBOSE = "2"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
_DOCTYPE = '<!DOCTYPE suite SYSTEM "https://testng.org/testng-1.0.dtd">'


def default_suite_xml(packages: Iterable[str]) -> str:
    """Render a suite that runs every test in the given packages."""
    suite = ET.Element("suite", {"name": SUITE_NAME, "verbose": SUITE_VERBOSE})
    test = ET.SubElement(suite, "test", {"name": TEST_NAME})
    packages_elem = ET.SubElement(test, "packages")
    for name in sorted(set(packages)):
        ET.SubElement(packages_elem, "package", {"name": name})

    ET.indent(suite, space="  ")
    body = ET.tostring(suite, encoding="unicode")
    return "\n".join([_XML_DECLARATION, _DOCTYPE, body]) + "\n"


def write_default_suite(packages: Iterable[str], directory: str | Path | None = None) -> Path:
    """Write the default suite to a new temporary file and return its absolute path.

    The caller owns the file and is responsible for deleting it once the
    TestNG process is done with it.
    """
    content = default_suite_xml(packages)
    try:
        fd, name = tempfile.mkstemp(prefix="testng", suffix=".xml", dir=directory)
    except OSError as e:
        location = str(directory or tempfile.gettempdir())
        logger.error("Unable to create the default suite file in %s", location)
        raise SuiteWriteError(location, str(e)) from e

    path = Path(name).absolute()
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        logger.error("An IO error occurred while writing the default suite file %s", path)
        path.unlink(missing_ok=True)
        raise SuiteWriteError(str(path), str(e)) from e

    logger.debug("Wrote default suite to %s", path)
    return path
