"""Shared fixtures for the key store tests."""

import pytest

from gemini_keystore.core.paths import PathResolver
from gemini_keystore.security.kdf import KdfProfile

# Very low Argon2 costs keep the unit tests fast
FAST_PROFILE = KdfProfile(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def fast_profile():
    return FAST_PROFILE


@pytest.fixture
def paths(tmp_path):
    """A PathResolver rooted in a throwaway config directory."""
    return PathResolver(config_root=tmp_path / "config")
