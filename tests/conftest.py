"""
Pytest configuration and fixtures for brandguard tests

This module provides shared fixtures for unit and integration tests.
"""
import copy
import itertools
from datetime import datetime, timezone
from typing import Any, Generator

import pytest
from testcontainers.postgres import PostgresContainer

from brandguard.core.errors import DatabaseError
from brandguard.core.models import (
    BrandRulesRecord,
    EvaluateRequest,
    EvaluationRecord,
    EvaluationResultRecord,
    RuleSet,
)
from brandguard.persistence import (
    DatabaseConnectionPool,
    EvaluationRepository,
    EvaluationResultRepository,
    RuleRepository,
    ensure_schema,
)
from brandguard.persistence.schema_mgmt import TABLES


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that wait on real timeouts"
    )


# =======================
# RULE DOCUMENT FIXTURES
# =======================

MINIMAL_RULES: dict[str, Any] = {
    "voice": {
        "traits": {
            "formality": [2, 4],
            "warmth": [3, 5],
            "energy": [2, 4],
            "humor": [1, 2],
            "confidence": [3, 5],
        },
        "lexicon": {
            "allowedWords": [],
            "bannedWords": ["cheap"],
            "bannedPhrases": ["best in the world"],
            "ctaWhitelist": ["Shop now"],
            "readability": {"targetGrade": 8, "maxExclamations": 1, "allowEmojis": False},
        },
    },
    "logoUsage": {
        "minSizePx": {"width": 64, "height": 64},
        "minClearSpaceX": 1,
        "aspectRatioLock": True,
        "placementGrid": ["top-left", "bottom-right"],
        "background": {
            "minContrastRatio": 4.5,
            "invertThresholdLuminance": 0.35,
            "maxBackgroundComplexity": 0.25,
            "blurOverlayRequiredAboveComplexity": True,
        },
    },
}


@pytest.fixture
def minimal_rules() -> dict[str, Any]:
    """A minimal valid V2 rule document (fresh deep copy per test)"""
    return copy.deepcopy(MINIMAL_RULES)


@pytest.fixture
def legacy_rules() -> dict[str, Any]:
    """A representative V1 rule document"""
    return {
        "prohibitedClaims": ["cures everything", "100% guaranteed"],
        "tone": {"allowed": ["formal", "friendly"], "bannedWords": ["cheap"]},
        "logoUsage": {
            "allowedPositions": ["top-left", "center"],
            "bannedBackgrounds": ["#FF0000"],
            "invertOnDark": True,
            "minClearSpaceRatio": 0.5,
        },
        "sensitive": {"disallowCategories": ["alcohol", "gambling"], "minAudienceAge": 21},
        "requiredDisclaimers": ["Terms apply."],
    }


# =======================
# IN-MEMORY REPOSITORIES
# =======================

def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRuleRepository(RuleRepository):
    """Rule repository kept in a dict; ``fail`` makes every call raise DatabaseError."""

    def __init__(self):
        self.records: dict[str, BrandRulesRecord] = {}
        self.fail = False
        self._ids = itertools.count(1)

    def _check(self):
        if self.fail:
            raise DatabaseError("database unavailable")

    def save(self, brand_id: str, rule_set: RuleSet) -> BrandRulesRecord:
        self._check()
        now = _now()
        record = BrandRulesRecord(
            id=f"rule-{next(self._ids)}",
            brand_id=brand_id,
            rules=rule_set,
            created_at=now,
            updated_at=now,
        )
        self.records[record.id] = record
        return record

    def replace(self, rule_id: str, rule_set: RuleSet) -> BrandRulesRecord | None:
        self._check()
        existing = self.records.get(rule_id)
        if existing is None:
            return None
        record = existing.model_copy(update={"rules": rule_set, "updated_at": _now()})
        self.records[rule_id] = record
        return record

    def find_by_id(self, rule_id: str) -> BrandRulesRecord | None:
        self._check()
        return self.records.get(rule_id)

    def delete_by_id(self, rule_id: str) -> bool:
        self._check()
        return self.records.pop(rule_id, None) is not None

    def list_by_brand(self, brand_id: str) -> list[BrandRulesRecord]:
        self._check()
        return [r for r in self.records.values() if r.brand_id == brand_id]

    def find_all(self) -> list[BrandRulesRecord]:
        self._check()
        return list(self.records.values())


class InMemoryEvaluationRepository(EvaluationRepository):
    def __init__(self):
        self.records: dict[str, EvaluationRecord] = {}
        self.fail = False
        self._ids = itertools.count(1)

    def create_evaluation(self, request: EvaluateRequest, raw_result: Any) -> EvaluationRecord:
        if self.fail:
            raise DatabaseError("database unavailable")
        record = EvaluationRecord(
            id=f"eval-{next(self._ids)}",
            brand_id=request.brand_id,
            rule_id=request.rule_id,
            asset_url=request.asset_url,
            asset_type=request.asset_type,
            context=request.context,
            image_url=request.asset_url if request.asset_type == "IMAGE" else None,
            result=raw_result,
            created_at=_now(),
        )
        self.records[record.id] = record
        return record

    def find_evaluation_by_id(self, evaluation_id: str) -> EvaluationRecord | None:
        return self.records.get(evaluation_id)

    def find_latest_by_brand_and_rule(self, brand_id: str, rule_id: str) -> EvaluationRecord | None:
        if self.fail:
            raise DatabaseError("database unavailable")
        matches = [r for r in self.records.values() if r.brand_id == brand_id and r.rule_id == rule_id]
        return max(matches, key=lambda r: r.created_at, default=None)

    def add(self, **fields) -> EvaluationRecord:
        """Insert an evaluation directly (test setup helper)"""
        fields.setdefault("brand_id", "brand-1")
        fields.setdefault("rule_id", "rule-1")
        fields.setdefault("asset_url", "https://cdn.example.com/a.png")
        fields.setdefault("asset_type", "IMAGE")
        fields.setdefault("created_at", _now())
        record = EvaluationRecord(id=f"eval-{next(self._ids)}", **fields)
        self.records[record.id] = record
        return record


class InMemoryEvaluationResultRepository(EvaluationResultRepository):
    def __init__(self):
        self.records: list[EvaluationResultRecord] = []
        self.fail = False
        self._ids = itertools.count(1)

    def create_result(self, evaluation_id: str, url: str, payload: Any) -> EvaluationResultRecord:
        if self.fail:
            raise DatabaseError("database unavailable")
        record = EvaluationResultRecord(
            id=f"result-{next(self._ids)}",
            evaluation_id=evaluation_id,
            url=url,
            payload=payload,
            created_at=_now(),
        )
        self.records.append(record)
        return record

    def list_by_evaluation_id(self, evaluation_id: str) -> list[EvaluationResultRecord]:
        matching = [r for r in self.records if r.evaluation_id == evaluation_id]
        return list(reversed(matching))


@pytest.fixture
def rule_repository() -> InMemoryRuleRepository:
    return InMemoryRuleRepository()


@pytest.fixture
def evaluation_repository() -> InMemoryEvaluationRepository:
    return InMemoryEvaluationRepository()


@pytest.fixture
def result_repository() -> InMemoryEvaluationResultRepository:
    return InMemoryEvaluationResultRepository()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_brandguard",
        password="test_password",
        dbname="test_brandguard",
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="session")
def db_pool(postgres_container) -> Generator[DatabaseConnectionPool, None, None]:
    """
    Open a connection pool against the test container and create the schema

    Yields:
        Open DatabaseConnectionPool
    """
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_brandguard",
        user="test_brandguard",
        password="test_password",
        min_size=1,
        max_size=4,
    )
    pool.open()
    ensure_schema(pool)

    yield pool

    pool.close()


@pytest.fixture(scope="function")
def clean_db(db_pool) -> DatabaseConnectionPool:
    """
    Provide a clean database by truncating all tables before each test

    Args:
        db_pool: Session-scoped connection pool

    Returns:
        The same pool, with empty tables
    """
    db_pool.execute_command(f"TRUNCATE TABLE {', '.join(TABLES)} CASCADE")
    return db_pool
