"""
PillTrack Test Suite
====================

This package contains all tests for the PillTrack medication tracker.

Test Structure:
- test_tools/: Schedule engine unit tests
- test_services/: Service tests against an in-memory database
- test_actions/: Reminder scanner tests
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_tools/

    # Run with verbose output
    pytest -v

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""
