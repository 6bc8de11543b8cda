"""
Table definitions for brandguard's relational store.

Rule sets, evaluations and fix results are stored as JSONB documents next to
their identifying columns.
"""

from .connection import DatabaseConnectionPool, database_errors

SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS brand_rules (
    id          TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    brand_id    TEXT NOT NULL,
    rules       JSONB NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_brand_rules_brand_id ON brand_rules (brand_id);

CREATE TABLE IF NOT EXISTS evaluation (
    id          TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    brand_id    TEXT NOT NULL,
    rule_id     TEXT NOT NULL,
    asset_url   TEXT NOT NULL,
    asset_type  TEXT NOT NULL CHECK (asset_type IN ('IMAGE', 'VIDEO')),
    context     TEXT,
    image_url   TEXT,  -- IMAGE assets only, for older readers
    result      JSONB,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_evaluation_brand_rule ON evaluation (brand_id, rule_id);

CREATE TABLE IF NOT EXISTS evaluation_result (
    id             TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    evaluation_id  TEXT NOT NULL REFERENCES evaluation (id) ON DELETE CASCADE,
    url            TEXT NOT NULL,
    payload        JSONB,
    created_at     TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_evaluation_result_evaluation ON evaluation_result (evaluation_id);
"""

TABLES = ("evaluation_result", "evaluation", "brand_rules")


def ensure_schema(pool: DatabaseConnectionPool) -> None:
    """Create the brandguard tables if they don't exist."""
    with database_errors("schema", "create"):
        pool.execute_command(SCHEMA_DDL)
