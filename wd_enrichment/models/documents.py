"""Models for batch documents and the enriched documents sent back to the API."""

# Python imports
import json
from typing import Any, Literal

# 3rd party imports
from pydantic import BaseModel, ConfigDict, Field

# Local imports
from wd_enrichment.constants import DEFAULT_ANNOTATION_CONFIDENCE

__all__ = [
    "Annotation",
    "AnnotationProperties",
    "Document",
    "EnrichedDocument",
    "SubmitBatchInput",
]


def _as_text(value: Any) -> str:
    """Render a JSON value as text: scalars in their JSON form, containers as ''."""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return ""
    return json.dumps(value)


class Document(BaseModel):
    """
    A document of a batch, as returned by the enrichment API.

    Documents are open records: every key the API sends is kept so that it can be
    submitted back unchanged. Only ``document_id`` and ``features`` are read.
    """

    model_config = ConfigDict(extra="allow")

    document_id: Any = None
    features: Any = None

    def field_names(self) -> list[str]:
        """
        Return the ``properties.field_name`` values of the document's features.

        Features that are not objects, or that carry no ``field_name``, are skipped.
        Non-string values are rendered as JSON text, e.g. ``true`` or ``42``.
        """
        names: list[str] = []
        features = self.features if isinstance(self.features, list) else []
        for feature in features:
            if not isinstance(feature, dict):
                continue
            properties = feature.get("properties")
            if not isinstance(properties, dict) or properties.get("field_name") is None:
                continue
            names.append(_as_text(properties["field_name"]))
        return names


class AnnotationProperties(BaseModel):
    """Properties of an entity annotation."""

    type: Literal["entities"] = "entities"
    entity_type: str
    entity_text: str
    confidence: float = DEFAULT_ANNOTATION_CONFIDENCE


class Annotation(BaseModel):
    """An annotation attached to an enriched document."""

    type: Literal["annotation"] = "annotation"
    properties: AnnotationProperties

    @classmethod
    def entity(cls, value: str) -> "Annotation":
        """Build an entity annotation whose type and text are both ``value``."""
        return cls(properties=AnnotationProperties(entity_type=value, entity_text=value))


class EnrichedDocument(BaseModel):
    """A document whose raw features were replaced by annotations."""

    model_config = ConfigDict(extra="allow")

    document_id: Any
    features: list[Annotation] = Field(default_factory=list)


class SubmitBatchInput(BaseModel):
    """Request body for submitting an enriched batch."""

    version: str
    documents: list[EnrichedDocument]
