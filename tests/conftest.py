import pytest

from tests.test_utils import RaceScenario


@pytest.fixture
def scenario():
    """Factory fixture to create scenarios."""

    def _builder(cars_config, **kwargs):
        return RaceScenario(cars_config, **kwargs)

    return _builder
