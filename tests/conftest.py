import logging

import pytest


def by_slow_marker(item):
    # Check if test is marked as slow
    is_slow = 0 if item.get_closest_marker("slow") is None else 1

    # Check if test is integration test
    is_integration = 1 if "integration" in str(item.fspath) else 0

    # Unit tests first, then slow unit tests, then integration tests, then slow integration tests
    return (is_integration, is_slow)


def pytest_addoption(parser):
    parser.addoption("--slow-last", action="store_true", default=False)


def pytest_collection_modifyitems(items, config):
    if config.getoption("--slow-last"):
        items.sort(key=by_slow_marker)


@pytest.fixture(autouse=True)
def configure_logging_for_tests(caplog):
    """Configure logging to work properly with caplog fixture.

    This fixture ensures that all Rolodex loggers propagate their messages to the root logger so that caplog can
    capture them properly.
    """
    caplog.set_level(logging.DEBUG)

    root_logger = logging.getLogger()
    original_level = root_logger.level
    root_logger.setLevel(logging.DEBUG)

    rolodex_logger = logging.getLogger("rolodex")
    original_propagate = rolodex_logger.propagate
    rolodex_logger.propagate = True

    yield

    root_logger.setLevel(original_level)
    rolodex_logger.propagate = original_propagate


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path, monkeypatch):
    """Write log files under the test's temporary directory instead of ~/.cache/rolodex."""
    monkeypatch.setenv("ROLODEX_DIR_PATHS__LOGGER_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("ROLODEX_DIR_PATHS__STRUCT_LOGGER_DIR", str(tmp_path / "structlogs"))
