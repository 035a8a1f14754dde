"""Elasticsearch client singleton with connection management and health checking."""
from __future__ import annotations
from typing import Optional

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import ConnectionError as ESConnectionError

from core.config import config as cfg
from core.logger import get_logger

log = get_logger("elastic/client")

_client: Optional[Elasticsearch] = None


def es() -> Elasticsearch:
    """
    Get or create the Elasticsearch client used by the transaction store.

    Raises:
        RuntimeError: If the endpoint or API key is not configured
        ESConnectionError: If the cluster cannot be reached
    """
    global _client

    if _client is not None:
        return _client

    for setting, value in (("ELASTIC_CLOUD_ENDPOINT", cfg.elastic_cloud_endpoint),
                           ("ELASTIC_API_KEY", cfg.elastic_api_key)):
        if not value:
            error_msg = f"{setting} is not configured"
            log.error(error_msg)
            raise RuntimeError(error_msg)

    log.info("Initializing Elasticsearch client")
    try:
        client = Elasticsearch(
            cfg.elastic_cloud_endpoint,
            api_key=cfg.elastic_api_key,
            request_timeout=30,
            retry_on_timeout=True,
            max_retries=3,
        )
        info = client.info()
        log.info(
            f"Elasticsearch client ready: cluster={info.get('cluster_name', 'unknown')} "
            f"version={info.get('version', {}).get('number', 'unknown')}"
        )
    except ESConnectionError as e:
        log.error(f"Failed to connect to Elasticsearch: {e}", exc_info=True)
        raise

    _client = client
    return _client
