"""Configures pytest further: key size tiers and a shared random state."""
import pytest

from rsakit.randstate import RandState


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower key sizes")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run multi-thousand bit key tests")


def pytest_collection_modifyitems(config, items):
    tiers = {
        "slow": (config.getoption("--skip-slow"), "Slow key size: drop --skip-slow to run"),
        "extreme": (not config.getoption("--run-extreme"), "Extreme key size: needs --run-extreme"),
    }
    skips = {tier: pytest.mark.skip(reason=reason) for tier, (skipped, reason) in tiers.items() if skipped}
    for item in items:
        for tier in skips.keys() & item.keywords.keys():
            item.add_marker(skips[tier])


@pytest.fixture
def state():
    """A freshly seeded random state, cleared after the test."""
    with RandState(42) as st:
        yield st
