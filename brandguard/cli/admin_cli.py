"""
Admin CLI for brand rule sets and the evaluation workflows.

Usage:
    python -m brandguard.cli.admin_cli validate-rules --file <path>
    python -m brandguard.cli.admin_cli migrate-rules --file <path>
    python -m brandguard.cli.admin_cli init-db
    python -m brandguard.cli.admin_cli create-rules --brand-id <id> --file <path>
    python -m brandguard.cli.admin_cli import-legacy-rules --brand-id <id> --file <path>
    python -m brandguard.cli.admin_cli list-rules [--brand-id <id>]
    python -m brandguard.cli.admin_cli show-rules --rule-id <id>
    python -m brandguard.cli.admin_cli update-rules --rule-id <id> --file <path>
    python -m brandguard.cli.admin_cli delete-rules --rule-id <id>
    python -m brandguard.cli.admin_cli evaluate --brand-id <id> --rule-id <id> --asset-url <url>
    python -m brandguard.cli.admin_cli fix --evaluation-id <id>
    python -m brandguard.cli.admin_cli results --evaluation-id <id>
    python -m brandguard.cli.admin_cli show-evaluation --evaluation-id <id>
    python -m brandguard.cli.admin_cli latest-evaluation --brand-id <id> --rule-id <id>

Every command prints a JSON document. Failures print the same body the HTTP
boundary would return and exit with status 1.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from psycopg import OperationalError

from brandguard.api.responses import render_outcome
from brandguard.config import UpstreamSettings
from brandguard.core.errors import BrandGuardError
from brandguard.core.models import Outcome
from brandguard.observability.logger import get_logger
from brandguard.persistence import (
    DatabaseConnectionPool,
    PostgresEvaluationRepository,
    PostgresEvaluationResultRepository,
    PostgresRuleRepository,
    ensure_schema,
)
from brandguard.services.brand_rules_service import (
    BrandRulesService,
    load_legacy_rule_set,
    load_rule_set,
)
from brandguard.upstream.orchestrator import UpstreamOrchestrator

logger = get_logger(__name__)

DB_COMMANDS = {
    "init-db",
    "create-rules",
    "import-legacy-rules",
    "list-rules",
    "show-rules",
    "update-rules",
    "delete-rules",
    "evaluate",
    "fix",
    "results",
    "show-evaluation",
    "latest-evaluation",
}


def content_type_for(path: Path) -> str:
    """Content type implied by a rules file suffix."""
    if path.suffix.lower() in {".yml", ".yaml"}:
        return "application/x-yaml"
    return "application/json"


def read_rules_file(path_str: str) -> tuple[str, str]:
    """Rules file text and its content type."""
    path = Path(path_str)
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")
    return path.read_text(encoding="utf-8"), content_type_for(path)


def emit(outcome: Outcome, success_status: int = 200) -> int:
    """Print an outcome as JSON and return the process exit code."""
    status, body = render_outcome(outcome, success_status)
    print(json.dumps({"status": status, "body": body}, indent=2, default=str))
    return 0 if outcome.ok else 1


def _load_outcome(loader, path: str) -> Outcome:
    raw, content_type = read_rules_file(path)
    try:
        return Outcome.success(loader(raw, content_type).to_document())
    except BrandGuardError as e:
        return Outcome.failed(e.to_failure())


def validate_rules_command(args) -> int:
    """Validate a V2 rules file without storing it."""
    return emit(_load_outcome(load_rule_set, args.file))


def migrate_rules_command(args) -> int:
    """Migrate a V1 rules file and print the validated V2 document."""
    return emit(_load_outcome(load_legacy_rule_set, args.file))


def run_db_command(args, pool: DatabaseConnectionPool) -> int:
    """Dispatch the commands that need the database."""
    if args.command == "init-db":
        ensure_schema(pool)
        print(json.dumps({"status": 200, "body": {"schema": "ready"}}))
        return 0

    rules = BrandRulesService(PostgresRuleRepository(pool))
    orchestrator = UpstreamOrchestrator(
        UpstreamSettings.from_env(),
        PostgresEvaluationRepository(pool),
        PostgresEvaluationResultRepository(pool),
    )

    if args.command == "create-rules":
        raw, content_type = read_rules_file(args.file)
        return emit(rules.create_rules(args.brand_id, raw, content_type), success_status=201)
    if args.command == "import-legacy-rules":
        raw, content_type = read_rules_file(args.file)
        return emit(rules.import_legacy_rules(args.brand_id, raw, content_type), success_status=201)
    if args.command == "list-rules":
        return emit(rules.list_rules(args.brand_id) if args.brand_id else rules.list_all())
    if args.command == "show-rules":
        return emit(rules.get_rules(args.rule_id))
    if args.command == "update-rules":
        raw, content_type = read_rules_file(args.file)
        return emit(rules.update_rules(args.rule_id, raw, content_type))
    if args.command == "delete-rules":
        return emit(rules.delete_rules(args.rule_id), success_status=204)
    if args.command == "evaluate":
        request: dict[str, Any] = {
            "brandId": args.brand_id,
            "ruleId": args.rule_id,
            "assetUrl": args.asset_url,
            "assetType": args.asset_type,
            "context": args.context,
        }
        return emit(orchestrator.evaluate(request))
    if args.command == "fix":
        return emit(orchestrator.fix(args.evaluation_id))
    if args.command == "results":
        return emit(orchestrator.list_results(args.evaluation_id))
    if args.command == "show-evaluation":
        return emit(orchestrator.get_evaluation(args.evaluation_id))
    if args.command == "latest-evaluation":
        return emit(orchestrator.latest_evaluation(args.brand_id, args.rule_id))

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="brandguard admin CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Database connection arguments (fall back to DB_* environment variables)
    parser.add_argument("--db-host", help="Database host (default: $DB_HOST or localhost)")
    parser.add_argument("--db-port", type=int, help="Database port (default: $DB_PORT or 5432)")
    parser.add_argument("--db-name", help="Database name (default: $DB_NAME or brandguard)")
    parser.add_argument("--db-user", help="Database user (default: $DB_USER or brandguard)")
    parser.add_argument("--db-password", help="Database password (default: $DB_PASSWORD)")
    parser.add_argument("--env-file", default=".env", help="dotenv file to load (default: .env)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser("validate-rules", help="Validate a V2 rules file")
    validate_parser.add_argument("--file", required=True, help="Path to a YAML or JSON rules file")

    migrate_parser = subparsers.add_parser("migrate-rules", help="Migrate a V1 rules file to V2")
    migrate_parser.add_argument("--file", required=True, help="Path to a YAML or JSON V1 rules file")

    subparsers.add_parser("init-db", help="Create the brandguard tables")

    create_parser = subparsers.add_parser("create-rules", help="Store a new V2 rule set for a brand")
    create_parser.add_argument("--brand-id", required=True, help="Brand ID")
    create_parser.add_argument("--file", required=True, help="Path to a YAML or JSON rules file")

    import_parser = subparsers.add_parser(
        "import-legacy-rules",
        help="Migrate a V1 rules file and store it for a brand"
    )
    import_parser.add_argument("--brand-id", required=True, help="Brand ID")
    import_parser.add_argument("--file", required=True, help="Path to a YAML or JSON V1 rules file")

    list_parser = subparsers.add_parser("list-rules", help="List stored rule sets")
    list_parser.add_argument("--brand-id", help="Only rule sets of this brand (optional)")

    show_parser = subparsers.add_parser("show-rules", help="Show one rule set")
    show_parser.add_argument("--rule-id", required=True, help="Rule set ID")

    update_parser = subparsers.add_parser("update-rules", help="Replace a stored rule set")
    update_parser.add_argument("--rule-id", required=True, help="Rule set ID")
    update_parser.add_argument("--file", required=True, help="Path to a YAML or JSON rules file")

    delete_parser = subparsers.add_parser("delete-rules", help="Delete a stored rule set")
    delete_parser.add_argument("--rule-id", required=True, help="Rule set ID")

    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate an asset upstream")
    evaluate_parser.add_argument("--brand-id", required=True, help="Brand ID")
    evaluate_parser.add_argument("--rule-id", required=True, help="Rule set ID")
    evaluate_parser.add_argument("--asset-url", required=True, help="Public URL of the asset")
    evaluate_parser.add_argument(
        "--asset-type",
        choices=["IMAGE", "VIDEO"],
        default="IMAGE",
        help="Asset type (default: IMAGE)"
    )
    evaluate_parser.add_argument("--context", help="Free-form campaign context (optional)")

    fix_parser = subparsers.add_parser("fix", help="Request a fix for an evaluation")
    fix_parser.add_argument("--evaluation-id", required=True, help="Evaluation ID")

    results_parser = subparsers.add_parser("results", help="List fix results of an evaluation")
    results_parser.add_argument("--evaluation-id", required=True, help="Evaluation ID")

    show_evaluation_parser = subparsers.add_parser("show-evaluation", help="Show one stored evaluation")
    show_evaluation_parser.add_argument("--evaluation-id", required=True, help="Evaluation ID")

    latest_parser = subparsers.add_parser(
        "latest-evaluation",
        help="Show the newest evaluation of a brand against a rule set"
    )
    latest_parser.add_argument("--brand-id", required=True, help="Brand ID")
    latest_parser.add_argument("--rule-id", required=True, help="Rule set ID")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    load_dotenv(args.env_file)

    try:
        if args.command == "validate-rules":
            return validate_rules_command(args)
        if args.command == "migrate-rules":
            return migrate_rules_command(args)
        if args.command not in DB_COMMANDS:
            parser.print_help()
            return 1

        pool = DatabaseConnectionPool(
            host=args.db_host,
            port=args.db_port,
            database=args.db_name,
            user=args.db_user,
            password=args.db_password,
        )
        try:
            pool.open()
            return run_db_command(args, pool)
        finally:
            pool.close()

    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        print(f"\nError: {e}")
        return 1
    except OperationalError as e:
        logger.error(f"Database unavailable: {e}", exc_info=True)
        print(f"\nError: database unavailable: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
