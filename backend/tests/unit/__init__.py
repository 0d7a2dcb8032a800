"""
Unit Tests

Unit tests run in isolation without a database. Repositories are replaced
with in-memory fakes or mocks.
"""
