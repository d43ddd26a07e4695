"""
Client classes for the enrichment API.

- BatchClient: Synchronous client for fetching and submitting enrichment batches
"""

from wd_enrichment.clients.batch import BatchClient

__all__ = ["BatchClient"]
