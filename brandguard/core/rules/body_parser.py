"""
Rules body parsing.

Turns a raw request body into an untyped value, choosing YAML or JSON from
the declared content type. No schema awareness at this stage.
"""

import json
from typing import Any

import yaml

from brandguard.core.errors import RuleBodyParseError


def is_yaml_content_type(content_type: str | None) -> bool:
    """True when the content type names YAML (case-insensitive substring match)."""
    return "yaml" in (content_type or "").lower()


def parse_rules_body(raw_body: str, content_type: str | None) -> Any:
    """
    Parse a rules body as YAML or JSON.

    Args:
        raw_body: Request body text
        content_type: Declared content type; anything containing "yaml"
            selects YAML, everything else is parsed as JSON

    Returns:
        Arbitrary nested value

    Raises:
        RuleBodyParseError: If the body is malformed for the selected format
    """
    if is_yaml_content_type(content_type):
        try:
            return yaml.safe_load(raw_body)
        except yaml.YAMLError as e:
            raise RuleBodyParseError(f"Invalid YAML body: {e}", field="body") from e

    try:
        return json.loads(raw_body)
    except (json.JSONDecodeError, TypeError) as e:
        raise RuleBodyParseError(f"Invalid JSON body: {e}", field="body") from e
