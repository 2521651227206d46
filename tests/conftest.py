import os

import pytest

_OFFLINE_TEST_ENV_DEFAULTS = {
    "DEBIAN_FRONTEND": "noninteractive",
}


def pytest_addoption(parser) -> None:
    parser.addoption(
        "--run-docker-integration",
        action="store_true",
        default=False,
        help="run tests marked docker_integration (live docker daemon required)",
    )


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers",
        "docker_integration: requires a live docker daemon; skipped unless --run-docker-integration is provided",
    )
    for key, value in _OFFLINE_TEST_ENV_DEFAULTS.items():
        os.environ.setdefault(key, value)


def pytest_collection_modifyitems(config, items) -> None:
    if config.getoption("--run-docker-integration"):
        return

    skip_live = pytest.mark.skip(reason="requires --run-docker-integration (live docker opt-in)")
    for item in items:
        if "docker_integration" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def _clear_nodewizard_env(monkeypatch) -> None:
    for key in list(os.environ):
        if key.startswith("NODEWIZARD_"):
            monkeypatch.delenv(key, raising=False)
