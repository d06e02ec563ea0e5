"""Pytest configuration and fixtures for E2E tests.

These tests drive a browser against a running server
(``python -m docmind.main``) and are deselected by default; run them with
``pytest -m e2e``.
"""
import pytest
from playwright.sync_api import Page


# Test configuration
BASE_URL = "http://localhost:5000"
TEST_TIMEOUT = 30000  # 30 seconds


@pytest.fixture
def chat_page(page: Page) -> Page:
    """Navigate to the chat page and return the page object."""
    page.goto(BASE_URL)
    page.wait_for_load_state("networkidle")
    page.set_default_timeout(TEST_TIMEOUT)
    return page


@pytest.fixture
def test_message():
    """Standard test message."""
    return "Hello, this is a test message"


@pytest.fixture
def rag_test_message():
    """Test message that should hit the seeded sample data."""
    return "What does RAG stand for?"
