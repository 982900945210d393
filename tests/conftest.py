"""Shared pytest configuration."""


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without a browser")
    config.addinivalue_line("markers", "integration: tests that run the CLI")
