# =============================================================================
# Runtime Context - Dependency Container
# =============================================================================
# Built once at bootstrap and owned by the invocation loop for the process
# lifetime. Provides the converter, the control-plane HTTP client and
# lazy-loaded AWS clients to user functions.
# =============================================================================

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from simple_lambda.runtime.config import RuntimeConfig
from simple_lambda.runtime.convert import Converter, JsonConverter
from simple_lambda.runtime.http import RuntimeHttpClient

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"})


class RuntimeContext:
    """
    Dependency container for the runtime and the user function.

    AWS clients are lazy-loaded on first access and cached, so functions
    should take them from here instead of creating their own.

    Usage:
        def build(context: RuntimeContext):
            table = context.resource("dynamodb").Table("orders")

            def handler(event, ctx):
                table.put_item(Item=event)
                return {"ok": True}
            return handler

    The context is a context manager; leaving the `with` block closes every
    cached client.
    """

    def __init__(
        self,
        config: RuntimeConfig,
        converter: Converter = None,
        http_client: RuntimeHttpClient = None,
    ):
        self.config = config
        self.converter = converter or JsonConverter()
        self.http_client = http_client or RuntimeHttpClient(post_timeout=config.post_timeout)
        self._clients: Dict[str, Any] = {}
        self._session: Optional[boto3.session.Session] = None
        self._closed = False

    @property
    def region(self) -> str:
        return self.config.region

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def session(self) -> boto3.session.Session:
        """boto3 session bound to the configured region."""
        if self._session is None:
            self._session = boto3.session.Session(region_name=self.region)
        return self._session

    def client(self, service: str, **kwargs):
        """
        Cached boto3 client for a service (e.g. "s3", "sqs").

        Without an explicit `config`, clients use standard-mode retries.
        """
        key = f"client_{service}"
        if key not in self._clients:
            logger.debug(f"Creating AWS client: {service} ({self.region})")
            kwargs.setdefault("config", DEFAULT_CLIENT_CONFIG)
            self._clients[key] = self.session.client(service, **kwargs)
        return self._clients[key]

    def resource(self, service: str, **kwargs):
        """Cached boto3 resource for a service (e.g. "dynamodb")."""
        key = f"resource_{service}"
        if key not in self._clients:
            logger.debug(f"Creating AWS resource: {service} ({self.region})")
            kwargs.setdefault("config", DEFAULT_CLIENT_CONFIG)
            self._clients[key] = self.session.resource(service, **kwargs)
        return self._clients[key]

    def close(self) -> None:
        """Release cached clients and the HTTP client. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        for key, value in self._clients.items():
            client = value.meta.client if key.startswith("resource_") else value
            close = getattr(client, "close", None)
            if callable(close):
                try:
                    close()
                except Exception as e:
                    logger.warning(f"Failed to close {key}: {e}")
        self._clients.clear()
        self.http_client.close()
        logger.debug("Runtime context closed")

    def __enter__(self) -> "RuntimeContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
