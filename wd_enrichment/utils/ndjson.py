"""Parsing of newline-delimited JSON batch bodies."""

# Python imports
import json
import logging

# 3rd party imports
from pydantic import ValidationError

# Local imports
from wd_enrichment.exceptions import BatchParseError
from wd_enrichment.models import Document

logger = logging.getLogger(__name__)


def parse_ndjson_documents(text: str) -> list[Document]:
    """
    Parse a newline-delimited JSON body into documents.

    Every non-empty line is parsed independently as one document. A line that is not
    a JSON object aborts the whole batch; no partial result is returned.

    :param text: the response body.

    :return: the documents, in the order they appear in the body.

    :raises BatchParseError: if any line cannot be parsed.
    """
    documents: list[Document] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            documents.append(Document.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            raise BatchParseError(
                f"Invalid document on line {line_number}: {e}", line_number
            ) from e
    logger.debug(f"Parsed {len(documents)} documents from batch body")
    return documents
