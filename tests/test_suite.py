"""Default suite tests."""

import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from bld_testng.exceptions import ConfigurationError, SuiteWriteError
from bld_testng.suite import default_suite_xml, write_default_suite


def test_default_suite_layout():
    xml = default_suite_xml(["com.example", "org.sample.*"])
    lines = xml.splitlines()

    assert lines[0] == '<?xml version="1.0" encoding="UTF-8"?>'
    assert lines[1] == '<!DOCTYPE suite SYSTEM "https://testng.org/testng-1.0.dtd">'

    root = ET.fromstring(xml.encode("utf-8"))
    assert root.tag == "suite"
    assert root.get("name") == "bld Default Suite"
    assert root.get("verbose") == "2"

    test = root.find("test")
    assert test.get("name") == "All Packages"
    assert [p.get("name") for p in test.findall("packages/package")] == ["com.example", "org.sample.*"]


def test_package_names_are_escaped():
    root = ET.fromstring(default_suite_xml(['a"b&c']).encode("utf-8"))
    assert root.find("test/packages/package").get("name") == 'a"b&c'


def test_write_default_suite(tmp_path: Path):
    path = write_default_suite(["com.example"], directory=tmp_path)

    assert path.is_absolute()
    assert path.parent == tmp_path
    assert path.name.startswith("testng")
    assert path.suffix == ".xml"
    assert path.read_text(encoding="utf-8") == default_suite_xml(["com.example"])


def test_each_write_creates_a_new_file(tmp_path: Path):
    first = write_default_suite(["com.example"], directory=tmp_path)
    second = write_default_suite(["com.example"], directory=tmp_path)

    assert first != second


def test_unwritable_location(tmp_path: Path):
    missing = tmp_path / "missing"

    with pytest.raises(SuiteWriteError) as exc_info:
        write_default_suite(["com.example"], directory=missing)

    assert isinstance(exc_info.value, ConfigurationError)
    assert str(missing) in str(exc_info.value)
