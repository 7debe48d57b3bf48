"""Unit tests configuration file."""

import pytest

from prot2py.generator import GenFile


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


def _exec(genfile: GenFile) -> dict:
    namespace: dict = {"__name__": "prot2py_generated"}
    exec(genfile.render(), namespace)
    return namespace


@pytest.fixture
def gen_code():
    """Execute the source held by a GenFile and return its namespace."""
    return _exec
