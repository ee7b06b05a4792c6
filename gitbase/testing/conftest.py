"""
Pytest plugin for gitbase testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["gitbase.testing.conftest"]
"""

# Re-export all fixtures for pytest auto-discovery
from gitbase.testing.fixtures import (
    gitlab,
    orchestrator,
    orchestrator_config,
    sample_access_token,
    sample_project,
    sample_user,
)

__all__ = [
    "gitlab",
    "orchestrator",
    "orchestrator_config",
    "sample_user",
    "sample_project",
    "sample_access_token",
]
