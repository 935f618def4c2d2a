"""
Collector RPC client.

Manages a running Fluentd instance through its HTTP RPC endpoint
(see https://docs.fluentd.org/deployment/rpc).
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
import structlog

from shipper.config import ShipperConfig, get_config

logger = structlog.get_logger(__name__)

FLUSH_BUFFERS = "plugins.flushBuffers"
RELOAD_CONFIG = "config.reload"

KNOWN_APIS = (
    "processes.interruptWorkers",
    "processes.killWorkers",
    "processes.flushBuffersAndKillWorkers",
    FLUSH_BUFFERS,
    RELOAD_CONFIG,
)


@dataclass
class RpcResponse:
    """Response returned by the RPC endpoint."""

    status_code: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @property
    def status_line(self) -> str:
        return f"HTTP {self.status_code} {self.reason}"


class RpcError(Exception):
    """Raised when an RPC call cannot be completed."""

    def __init__(self, message: str, url: str, response: Optional[RpcResponse] = None):
        super().__init__(message)
        self.url = url
        self.response = response


class RpcClient:
    """
    Client for the collector's RPC endpoint.

    Usage:
        ```python
        with RpcClient("http://127.0.0.1:24444") as rpc:
            rpc.flush_buffers()
        ```
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        config: Optional[ShipperConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the RPC client.

        Args:
            endpoint: RPC endpoint URL (from config if not provided)
            timeout: Request timeout in seconds (from config if not provided)
            config: Shipper configuration. Uses global config if not provided.
            client: Custom HTTP client
        """
        self.config = config or get_config()
        self.endpoint = (endpoint or self.config.rpc_endpoint).rstrip("/")
        self.timeout = timeout or self.config.rpc_timeout
        self._client = client or httpx.Client(timeout=self.timeout)

    def url_for(self, api: str) -> str:
        """Build the URL of an RPC API."""
        return f"{self.endpoint}/api/{api.lstrip('/')}"

    def invoke(self, api: str) -> RpcResponse:
        """
        Invoke an RPC API.

        Args:
            api: API name, e.g. ``plugins.flushBuffers``

        Returns:
            The successful response

        Raises:
            RpcError: If the endpoint is unreachable or does not answer 200
        """
        url = self.url_for(api)
        if api.lstrip("/") not in KNOWN_APIS:
            logger.warning("rpc_unknown_api", api=api)

        try:
            response = self._client.get(url)
        except httpx.RequestError as e:
            logger.error("rpc_connect_failed", url=url, error=str(e))
            raise RpcError(f"Unable to connect to the endpoint: {e}", url=url) from e

        result = RpcResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            headers=dict(response.headers),
            body=response.text,
        )

        if not result.ok:
            logger.error("rpc_request_failed", url=url, status=result.status_code)
            raise RpcError(f"RPC call failed: {result.status_line}", url=url, response=result)

        logger.info("rpc_invoked", api=api, status=result.status_code)
        return result

    def flush_buffers(self) -> RpcResponse:
        """Flush the collector's buffers."""
        return self.invoke(FLUSH_BUFFERS)

    def reload_config(self) -> RpcResponse:
        """Reload the collector's configuration."""
        return self.invoke(RELOAD_CONFIG)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
