"""Test suite for DWARF struct query.

Test Structure:
- domain/: Tests for models, catalog, schema loading, decoding and rendering
- infrastructure/: Tests for document input, memory capabilities, ELF symbols and logging
- config/: Tests for configuration management
- application/: Integration tests for the query session
- test_main.py: Command line entry point

Run tests with pytest:
    pytest                    # Run all tests
    pytest -m unit            # Run unit tests only
    pytest -m integration     # Run integration tests only
"""

# This file intentionally kept minimal to avoid import issues with pytest
# Individual test modules are discovered automatically by pytest
__version__ = "0.1.0"
