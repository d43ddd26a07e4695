"""
Enrichment of batch documents.

Enrichment replaces a document's raw ``features`` with entity annotations whose
values have been expanded through the abbreviation table. It is a pure function of
its input: documents are never mutated and never read each other.
"""

# Python imports
import logging
from collections.abc import Iterable, Mapping
from typing import Any

# Local imports
from wd_enrichment.abbreviations import ABBREVIATIONS, expand_abbreviation
from wd_enrichment.models import Annotation, Document, EnrichedDocument

logger = logging.getLogger(__name__)


def enrich(
    document: Document | Mapping[str, Any] | None,
    abbreviations: Mapping[str, str] = ABBREVIATIONS,
) -> EnrichedDocument | None:
    """
    Enrich a single document.

    All top-level fields of the document are copied verbatim, except ``features``
    which is replaced by one annotation per feature carrying a
    ``properties.field_name``, in input order.

    :param document: the document to enrich, either as a model or a plain mapping.
    :param abbreviations: the table used to expand feature field names.

    :return: the enriched document, or None if there is nothing to contribute
        because the document is absent or has no ``document_id`` key. A
        ``document_id`` of null is kept.
    """
    if document is None:
        logger.warning("Skipping enrichment: no document given.")
        return None
    if not isinstance(document, Document):
        document = Document.model_validate(dict(document))

    if "document_id" not in document.model_fields_set:
        logger.warning("Skipping enrichment: document has no document_id.")
        return None

    annotations = [
        Annotation.entity(expand_abbreviation(name, abbreviations))
        for name in document.field_names()
    ]
    fields = document.model_dump(exclude={"features"})
    fields["features"] = annotations
    return EnrichedDocument(**fields)


def enrich_documents(
    documents: Iterable[Document | Mapping[str, Any] | None],
    abbreviations: Mapping[str, str] = ABBREVIATIONS,
) -> list[EnrichedDocument]:
    """
    Enrich documents in order, leaving out those with nothing to contribute.

    :param documents: the documents of a batch.
    :param abbreviations: the table used to expand feature field names.

    :return: the enriched documents, in input order.
    """
    enriched: list[EnrichedDocument] = []
    for document in documents:
        result = enrich(document, abbreviations)
        if result is not None:
            enriched.append(result)
    return enriched
