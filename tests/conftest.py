"""Shared pytest configuration."""

pytest_plugins = ["gitbase.testing.conftest"]
