"""
Brand rule set lifecycle: create, import from V1, read, replace, delete.

Every operation returns an Outcome. Rule bodies go through the same path:
parse, (migrate,) validate, persist; a body that fails parsing or schema
validation yields UNPROCESSABLE_ENTITY with every violated field listed.
"""

from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from brandguard.core.errors import BrandGuardError, NotFoundError, RuleBodyParseError, RuleSchemaError
from brandguard.core.models import BrandRulesRecord, Failure, FailureKind, Outcome, RuleSet
from brandguard.core.rules import migrate_rules_v1_to_v2, parse_rules_body, require_valid_rules
from brandguard.core.rules.rule_validator import ValidationFailure
from brandguard.observability.logger import get_logger
from brandguard.persistence.base import RuleRepository
from brandguard.utils.validation import validate_identifier

logger = get_logger(__name__)


def load_rule_set(raw_body: str, content_type: str | None) -> RuleSet:
    """
    Parse and validate a V2 rules body.

    Raises:
        RuleSchemaError: If the body can't be parsed or violates the schema
    """
    try:
        document = parse_rules_body(raw_body, content_type)
    except RuleBodyParseError as e:
        raise RuleSchemaError(e.message) from e
    return require_valid_rules(document)


def load_legacy_rule_set(raw_body: str, content_type: str | None) -> RuleSet:
    """
    Parse a V1 rules body, migrate it to V2 and validate the result.

    Raises:
        RuleSchemaError: If the body can't be parsed, is not a well-formed V1
            document, or the migrated document violates the schema
    """
    try:
        document = parse_rules_body(raw_body, content_type)
    except RuleBodyParseError as e:
        raise RuleSchemaError(e.message) from e

    try:
        migrated = migrate_rules_v1_to_v2(document)
    except PydanticValidationError as e:
        raise ValidationFailure.from_pydantic(e).to_error() from e

    return require_valid_rules(migrated)


class BrandRulesService:
    """Rule set operations on top of a RuleRepository."""

    def __init__(self, repository: RuleRepository):
        self.repository = repository

    def create_rules(self, brand_id: Any, raw_body: str, content_type: str | None) -> Outcome:
        """Validate a V2 body and store it as a new rule set for the brand."""
        return self._run("create", lambda: self._create(brand_id, raw_body, content_type, load_rule_set))

    def import_legacy_rules(self, brand_id: Any, raw_body: str, content_type: str | None) -> Outcome:
        """Migrate a V1 body and store the result as a new rule set for the brand."""
        return self._run(
            "import_legacy", lambda: self._create(brand_id, raw_body, content_type, load_legacy_rule_set)
        )

    def get_rules(self, rule_id: Any) -> Outcome:
        return self._run("get", lambda: self._get(rule_id))

    def list_rules(self, brand_id: Any) -> Outcome:
        return self._run(
            "list", lambda: self.repository.list_by_brand(validate_identifier(brand_id, "brandId"))
        )

    def list_all(self) -> Outcome:
        return self._run("list_all", self.repository.find_all)

    def update_rules(self, rule_id: Any, raw_body: str, content_type: str | None) -> Outcome:
        """Replace the whole rule document of an existing rule set."""
        return self._run("update", lambda: self._update(rule_id, raw_body, content_type))

    def delete_rules(self, rule_id: Any) -> Outcome:
        return self._run("delete", lambda: self._delete(rule_id))

    def _create(
        self,
        brand_id: Any,
        raw_body: str,
        content_type: str | None,
        loader: Callable[[str, str | None], RuleSet],
    ) -> BrandRulesRecord:
        brand_id = validate_identifier(brand_id, "brandId")
        rule_set = loader(raw_body, content_type)
        return self.repository.save(brand_id, rule_set)

    def _get(self, rule_id: Any) -> BrandRulesRecord:
        rule_id = validate_identifier(rule_id, "ruleId")
        record = self.repository.find_by_id(rule_id)
        if record is None:
            raise NotFoundError(f"Brand rules not found: {rule_id}")
        return record

    def _update(self, rule_id: Any, raw_body: str, content_type: str | None) -> BrandRulesRecord:
        rule_id = validate_identifier(rule_id, "ruleId")
        rule_set = load_rule_set(raw_body, content_type)
        record = self.repository.replace(rule_id, rule_set)
        if record is None:
            raise NotFoundError(f"Brand rules not found: {rule_id}")
        return record

    def _delete(self, rule_id: Any) -> None:
        rule_id = validate_identifier(rule_id, "ruleId")
        if not self.repository.delete_by_id(rule_id):
            raise NotFoundError(f"Brand rules not found: {rule_id}")

    def _run(self, operation: str, action: Callable[[], Any]) -> Outcome:
        try:
            value = action()
        except BrandGuardError as e:
            failure: Failure = e.to_failure()
            log = logger.error if failure.kind is FailureKind.DATABASE_ERROR else logger.info
            log(
                f"Brand rules {operation} failed: {failure.message}",
                extra={"operation": operation, "kind": failure.kind.value},
            )
            return Outcome.failed(failure)

        logger.debug(f"Brand rules {operation} succeeded", extra={"operation": operation})
        return Outcome.success(value)
