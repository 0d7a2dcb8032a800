"""
Review Engine Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and test environment
    ├── unit/                # Isolated tests; repositories are faked or mocked
    └── integration/         # Full stack against a real database engine

Running Tests:
    # Run all tests
    pytest backend/tests -v

    # Run only unit tests
    pytest backend/tests/unit -v

    # Run only integration tests (SQLite by default, TEST_DATABASE_URL to override)
    pytest backend/tests/integration -v

    # Or use the runner script
    python scripts/run_tests.py
"""
