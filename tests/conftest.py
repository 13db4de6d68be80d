import sys
import os

import pytest

# Ensure the project root is in the python path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from restaurant_unifier.config.schemas import LocationConfig
from restaurant_unifier.matching.engine import MatchingConfig
from restaurant_unifier.models.sources import SourceData
from tests.fixtures.builders import GROUPS_CONFIG, PATTERNS_CONFIG, sample_documents


@pytest.fixture
def matching():
    """Matching configuration shared by most tests."""
    return MatchingConfig.from_dicts(PATTERNS_CONFIG, GROUPS_CONFIG)


@pytest.fixture
def location_configs():
    return [
        LocationConfig(name="Downtown", toast_id="toast-rest-1", doordash_id="dd-store-1", square_id="SQ-LOC-1"),
        LocationConfig(name="Airport", toast_id="toast-rest-2"),
    ]


@pytest.fixture
def sample_sources():
    return SourceData.model_validate(sample_documents())
