import os
from pathlib import Path

import pytest

# Test layer marker for each directory under tests/marketplace
_LAYERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.application,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="domain.toml overlay the marketplace domain loads",
    )


def pytest_sessionstart(session):
    # Must run before marketplace.domain is imported
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    for item in items:
        parts = Path(str(item.fspath)).parts
        for layer, marker in _LAYERS.items():
            if layer in parts:
                item.add_marker(marker)
                break
        if "integration" in parts and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
