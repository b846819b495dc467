"""
Pytest configuration and shared fixtures for the procparser test suite.

The parser tests run against a fixture /proc tree under tests/testdata/proc.
Each test gets its own copy so that fd symlinks can be created and files can
be altered without touching the checked-in data.
"""

import shutil
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procparser.config import clear_config_cache  # noqa: E402
from procparser.config import manager as config_manager  # noqa: E402
from procparser.parser import ProcParser  # noqa: E402
from procparser.system import SystemConfig, reset_system_config  # noqa: E402

TESTDATA_PROC = Path(__file__).parent / "testdata" / "proc"

PAGE_SIZE = 4096
TICKS_PER_SECOND = 10_000_000
CLOCK_REALTIME_OFFSET = 128


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Drop cached application and system configuration between tests."""
    monkeypatch.setattr(config_manager, "_CONFIG_FILE_PATH", config_manager._CONFIG_FILE_PATH)
    clear_config_cache()
    reset_system_config()
    yield
    clear_config_cache()
    reset_system_config()


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def proc_root(tmp_path):
    """A private copy of the fixture /proc tree with fd symlinks in place."""
    root = tmp_path / "proc"
    shutil.copytree(TESTDATA_PROC, root)

    fd_dir = root / "123" / "fd"
    (fd_dir / ".keep").unlink()
    (fd_dir / "0").symlink_to("/dev/null")
    (fd_dir / "1").symlink_to("/foobar")
    (fd_dir / "2").symlink_to("socket:[12345]")
    (fd_dir / "4").symlink_to("pipe:[67890]")

    (root / "123" / "exe").symlink_to("/usr/bin/ibazel")
    return root


@pytest.fixture
def mock_sysconfig(proc_root):
    """A SystemConfig double returning fixed host constants."""
    sysconfig = Mock(spec=SystemConfig)
    sysconfig.has_config.return_value = True
    sysconfig.page_size.return_value = PAGE_SIZE
    sysconfig.kernel_ticks_per_second.return_value = TICKS_PER_SECOND
    sysconfig.clock_realtime_offset.return_value = CLOCK_REALTIME_OFFSET
    sysconfig.proc_path.return_value = proc_root
    return sysconfig


@pytest.fixture
def parser(mock_sysconfig):
    """A ProcParser reading the fixture tree."""
    return ProcParser(mock_sysconfig)


@pytest.fixture
def config_file(tmp_path):
    """Write a config.toml and return its path; call with the file body."""

    def _write(body: str) -> Path:
        path = tmp_path / "config.toml"
        path.write_text(body)
        return path

    return _write
