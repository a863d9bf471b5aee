"""Declarative feed mapping configuration."""

from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator

LITERAL_PREFIX = "string("

# Record fields a content-field rule may target, plus the legacy names
# used by older mapping configurations.
CONTENT_FIELDS = ("title", "body", "excerpt", "status", "content_type", "published_at", "guid")
CONTENT_FIELD_ALIASES = {
    "post_title": "title",
    "post_content": "body",
    "post_excerpt": "excerpt",
    "post_status": "status",
    "post_type": "content_type",
    "post_date": "published_at",
    "post_date_gmt": "published_at",
    "post_guid": "guid",
}


class MappingTarget(BaseModel):
    """Where a value extracted by one path ends up."""

    field: str = Field(..., description="Content field, metadata key, taxonomy or enclosure key")
    is_item: bool = Field(False, description="Evaluate once per item node")
    is_meta: bool = Field(False, description="Store as metadata")
    is_tax: bool = Field(False, description="Store as taxonomy terms")
    is_enclosure: bool = Field(
        False,
        validation_alias=AliasChoices("is_enclosure", "is_photo"),
        description="Evaluate against enclosure nodes",
    )


class FieldMappingRule(MappingTarget):
    """One extraction rule: a path expression plus its target."""

    path: str = Field(..., description="XPath expression or string(<constant>) literal")

    @property
    def is_literal(self) -> bool:
        """Whether the path is a literal-string marker."""
        return self.path.startswith(LITERAL_PREFIX) and self.path.endswith(")")

    @property
    def literal_value(self) -> str:
        """Constant carried by a literal rule."""
        value = self.path[len(LITERAL_PREFIX):-1]
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        return value

    @property
    def content_field(self) -> str:
        """Record field name for content-field rules."""
        return CONTENT_FIELD_ALIASES.get(self.field, self.field)


class FeedMapping(BaseModel):
    """Mapping from a structured document to content records."""

    post_root: str = Field(..., description="Path selecting one node per content item")
    namespaces: Dict[str, str] = Field(default_factory=dict, description="Namespace prefixes used in paths")
    enc_parent: Optional[str] = Field(None, description="Path (relative to an item) of enclosure nodes")
    categories: List[str] = Field(default_factory=list, description="Default category terms for every record")
    nodes: Dict[str, List[MappingTarget]] = Field(
        default_factory=dict,
        description="Rules keyed by path; one path may feed several targets",
    )
    id_field: Optional[str] = Field(None, description="Metadata key holding the remote guid")
    enc_is_photo: bool = Field(False, description="Give enclosures the photo default keys")
    default_content_type: str = Field("post", description="Content type of produced records")
    default_status: str = Field("draft", description="Status of produced records")

    @model_validator(mode="after")
    def validate_content_fields(self) -> "FeedMapping":
        """Reject content-field rules targeting unknown record fields."""
        for rule in self.rules():
            if rule.is_meta or rule.is_tax or rule.is_enclosure:
                continue
            if rule.content_field not in CONTENT_FIELDS:
                raise ValueError(f"Rule '{rule.path}' targets unknown content field '{rule.field}'")
        return self

    def rules(self) -> List[FieldMappingRule]:
        """Flatten the path-keyed targets into rules."""
        return [
            FieldMappingRule(path=path, **target.model_dump())
            for path, targets in self.nodes.items()
            for target in targets
        ]
