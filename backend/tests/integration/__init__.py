"""
Integration Tests

Integration tests exercise routers, services and repositories together
against a real database engine. Each test gets a fresh SQLite file unless
TEST_DATABASE_URL points at another database (e.g. PostgreSQL).
"""
