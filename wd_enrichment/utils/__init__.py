from wd_enrichment.utils.ndjson import parse_ndjson_documents
from wd_enrichment.utils.retry import is_retryable_api_exception

__all__ = ["is_retryable_api_exception", "parse_ndjson_documents"]
