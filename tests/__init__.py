"""Tests for Manager Deployer.

Test Structure:
    tests/
    ├── conftest.py          # Shared pytest fixtures
    └── unit/                # Unit tests (no cluster, no kubectl)
        ├── test_certificates.py
        ├── test_manifest.py
        ├── test_executor.py
        ├── test_polling.py
        ├── test_readiness.py
        ├── test_client.py
        ├── test_deployer.py
        ├── test_config.py
        ├── test_error_handling.py
        ├── test_cli.py
        └── test_tools.py

Usage:
    # Run all tests
    pytest

    # Run only unit tests
    pytest -m unit

    # Run with verbose output
    pytest -v
"""
