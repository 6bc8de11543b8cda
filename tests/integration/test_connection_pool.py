"""
Tests for the PostgreSQL connection pool

Pool behavior against a testcontainers PostgreSQL, plus the error
translation used by every repository.
"""
import pytest

from brandguard.core.errors import DatabaseError
from brandguard.core.models import FailureKind
from brandguard.persistence import DatabaseConnectionPool, PostgresRuleRepository
from brandguard.persistence.connection import PoolNotOpenError, database_errors


def _pool(postgres_container, **kwargs) -> DatabaseConnectionPool:
    return DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_brandguard",
        user="test_brandguard",
        password="test_password",
        **kwargs,
    )


def test_password_is_required(monkeypatch):
    """Test that a pool can't be configured without a password"""
    monkeypatch.delenv("DB_PASSWORD", raising=False)

    with pytest.raises(ValueError):
        DatabaseConnectionPool(host="localhost")


def test_unopened_pool_is_database_error():
    """Test that repositories report an unopened pool as DatabaseError"""
    repository = PostgresRuleRepository(DatabaseConnectionPool(password="unused"))

    with pytest.raises(DatabaseError) as exc_info:
        repository.find_by_id("rule-1")

    assert exc_info.value.to_failure().kind is FailureKind.DATABASE_ERROR


def test_database_errors_leaves_other_exceptions_alone():
    with pytest.raises(KeyError):
        with database_errors("brand_rules", "find"):
            raise KeyError("not a database problem")


def test_database_errors_leaves_unrelated_runtime_errors_alone():
    """Test that only an unopened pool, not any RuntimeError, becomes DatabaseError"""
    with pytest.raises(RuntimeError, match="event loop is closed"):
        with database_errors("evaluation", "find"):
            raise RuntimeError("event loop is closed")


def test_unopened_pool_raises_pool_not_open():
    pool = DatabaseConnectionPool(password="unused")

    with pytest.raises(PoolNotOpenError):
        with pool.get_connection():
            pass


@pytest.mark.integration
def test_connection_pool_initialization(postgres_container):
    """Test that connection pool initializes correctly"""
    pool = _pool(postgres_container, min_size=2, max_size=5)

    pool.open()

    assert pool.is_open
    assert pool._pool.min_size == 2
    assert pool._pool.max_size == 5

    pool.close()
    assert not pool.is_open


@pytest.mark.integration
def test_get_cursor(postgres_container):
    """Test getting a cursor from a pooled connection"""
    pool = _pool(postgres_container)
    pool.open()

    with pool.get_cursor() as cur:
        cur.execute("SELECT 1 as test")
        assert cur.fetchone()["test"] == 1

    pool.close()


@pytest.mark.integration
def test_execute_command(clean_db):
    """Test executing INSERT/DELETE commands"""
    rowcount = clean_db.execute_command(
        "INSERT INTO brand_rules (brand_id, rules) VALUES (%s, %s)",
        ("brand-1", '{"voice": {}, "logoUsage": {}}'),
    )
    assert rowcount == 1

    rows = clean_db.execute_query("SELECT brand_id, rules FROM brand_rules")
    assert rows[0]["brand_id"] == "brand-1"
    assert rows[0]["rules"] == {"voice": {}, "logoUsage": {}}

    assert clean_db.execute_command("DELETE FROM brand_rules WHERE brand_id = %s", ("brand-1",)) == 1


@pytest.mark.integration
def test_context_manager(postgres_container):
    """Test using pool as context manager"""
    with _pool(postgres_container) as pool:
        result = pool.execute_query("SELECT 1 as test")
        assert result[0]["test"] == 1

    # Pool should be closed after context
    with pytest.raises(PoolNotOpenError):
        pool.execute_query("SELECT 1")


@pytest.mark.integration
def test_unreadable_stored_document_is_database_error(clean_db):
    """Test that a stored row failing the schema surfaces as DatabaseError"""
    clean_db.execute_command(
        "INSERT INTO brand_rules (id, brand_id, rules) VALUES (%s, %s, %s)",
        ("broken", "brand-1", '{"voice": {"traits": {"humor": [0, 9]}}}'),
    )

    with pytest.raises(DatabaseError):
        PostgresRuleRepository(clean_db).find_by_id("broken")
