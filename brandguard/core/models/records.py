"""
Stored records and request DTOs exchanged with the persistence layer.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from .rule_set import RuleModel, RuleSet

AssetType = Literal["IMAGE", "VIDEO"]


class BrandRulesRecord(RuleModel):
    """A rule set as stored for a brand."""

    id: str
    brand_id: str
    rules: RuleSet
    created_at: datetime
    updated_at: datetime

    def to_document(self) -> dict[str, Any]:
        document = self.model_dump(mode="json", by_alias=True, exclude={"rules"})
        document["rules"] = self.rules.to_document()
        return document


class EvaluateRequest(RuleModel):
    """
    Request to evaluate an asset against a brand rule set.

    ``image_url`` is the legacy spelling of ``asset_url``; it also implies
    an IMAGE asset when no type is given.
    """

    brand_id: str | None = None
    rule_id: str | None = None
    asset_url: str | None = None
    asset_type: str | None = None
    context: str | None = None
    image_url: str | None = None

    def normalized(self) -> "EvaluateRequest":
        asset_url = self.asset_url or self.image_url
        asset_type = self.asset_type or ("IMAGE" if self.image_url else None)
        return self.model_copy(update={"asset_url": asset_url, "asset_type": asset_type})

    def upstream_body(self) -> dict[str, Any]:
        """JSON body sent to the evaluation workflow."""
        return {
            "brandId": self.brand_id,
            "ruleId": self.rule_id,
            "assetUrl": self.asset_url,
            "assetType": self.asset_type,
            "context": self.context,
            # Older workflows still read the asset from ``image``
            "image": self.asset_url,
        }


class EvaluationRecord(RuleModel):
    id: str
    brand_id: str
    rule_id: str
    asset_url: str
    asset_type: AssetType
    context: str | None = None
    # Legacy column for older readers of image evaluations; travels to the fix
    # workflow inside to_document()
    image_url: str | None = None
    result: Any = None
    created_at: datetime

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class EvaluationResultRecord(RuleModel):
    """Output of a fix workflow run for an evaluation."""

    id: str
    evaluation_id: str
    url: str
    payload: Any = Field(default=None)
    created_at: datetime

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
