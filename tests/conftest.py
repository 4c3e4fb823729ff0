"""Pytest configuration and shared fixtures."""

import pytest
import os
import logging
from unittest.mock import Mock

from backlink_renamer.api_client import WikiClient
from backlink_renamer.config import AppConfig, RenameSettings, WikiConfig

# Disable logging during tests to reduce noise
logging.disable(logging.CRITICAL)


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test."""
    env_vars_to_clean = [
        "WIKI_DOMAIN",
        "WIKI_TOKEN",
        "WIKI_NAMESPACES",
        "WIKI_LOG_TEMPLATE",
        "WIKI_WATCH_DOCUMENT",
        "EDIT_DELAY",
        "POLL_INTERVAL",
        "LOG_LEVEL",
        "REQUEST_TIMEOUT",
    ]

    original_values = {}
    for var in env_vars_to_clean:
        original_values[var] = os.environ.get(var)
        if var in os.environ:
            del os.environ[var]

    yield

    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]


@pytest.fixture
def wiki_config():
    """Create test wiki configuration."""
    return WikiConfig(domain="test.wiki", token="test-token", request_timeout=30)


@pytest.fixture
def rename_settings():
    """Create test rename settings."""
    return RenameSettings(
        namespaces=["문서", "틀"],
        log_template="{old} -> {new}",
        watch_document="Bot:Stop",
    )


@pytest.fixture
def app_config(wiki_config, rename_settings):
    return AppConfig(wiki=wiki_config, rename=rename_settings)


@pytest.fixture
def mock_client():
    """Create mock wiki client."""
    return Mock(spec=WikiClient)


def _build_response(status_code=200, json_data=None, text="", reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def make_response():
    """Factory for mock requests responses."""
    return _build_response
