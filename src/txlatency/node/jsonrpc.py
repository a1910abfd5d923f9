"""
JSON-RPC adapter for node integration.

Provides blockchain access over an endpoint's HTTP JSON-RPC interface.
"""

import itertools
from typing import Any, Dict, List, Optional

import httpx
import structlog

from txlatency.node.interface import (
    NodeConnectionError,
    NodeInterface,
    Receipt,
    RpcError,
)

logger = structlog.get_logger(__name__)


def _to_int(value: Any) -> int:
    """Decode a JSON-RPC quantity."""
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a hex quantity, got {value!r}")
    return int(value, 16)


def _to_receipt(data: Any) -> Optional[Receipt]:
    """Decode a receipt; one without a block number is not yet included."""
    if not data:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"Expected a receipt object, got {data!r}")
    if data.get("blockNumber") is None:
        return None
    return Receipt.from_rpc(data)


class JsonRpcAdapter(NodeInterface):
    """
    HTTP JSON-RPC adapter.
    
    Implements the NodeInterface with one long-lived httpx client per
    endpoint. The client is created on connect() and reused for every call.
    """
    
    def __init__(
        self,
        url: str,
        name: str = "node",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the adapter.
        
        Args:
            url: JSON-RPC endpoint URL
            name: Label used in logs
            timeout: HTTP timeout for a single call, in seconds
            transport: Custom httpx transport (mainly for tests)
        """
        self.url = url
        self.name = name
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._ids = itertools.count(1)
    
    def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return
        
        self._client = httpx.Client(
            headers={"Content-Type": "application/json"},
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info("node_connected", node=self.name)
    
    def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None
            logger.info("node_disconnected", node=self.name)
    
    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC call and return its result.
        
        Raises:
            NodeConnectionError: On transport failure or a non-200 response
            RpcError: If the endpoint returns a JSON-RPC error object
        """
        if not self._client:
            self.connect()
        
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        
        try:
            response = self._client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.error("rpc_request_error", node=self.name, method=method, error=str(e))
            raise NodeConnectionError(f"{method} request to {self.name} failed: {e}") from e
        
        if response.status_code != 200:
            logger.error(
                "rpc_request_failed",
                node=self.name,
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise NodeConnectionError(
                f"{method} on {self.name} returned HTTP {response.status_code}: {response.text}"
            )
        
        try:
            body = response.json()
        except ValueError as e:
            raise NodeConnectionError(f"{method} on {self.name} returned invalid JSON") from e
        
        error = body.get("error")
        if error:
            raise RpcError(
                error.get("message", str(error)),
                code=error.get("code"),
                data=error.get("data"),
            )
        
        return body.get("result")
    
    def get_chain_id(self) -> int:
        return _to_int(self.call("eth_chainId"))
    
    def get_block_number(self) -> int:
        return _to_int(self.call("eth_blockNumber"))
    
    def get_gas_price(self) -> int:
        return _to_int(self.call("eth_gasPrice"))
    
    def get_max_priority_fee(self) -> int:
        return _to_int(self.call("eth_maxPriorityFeePerGas"))
    
    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return _to_int(self.call("eth_getTransactionCount", [address, block]))
    
    def get_balance(self, address: str) -> int:
        return _to_int(self.call("eth_getBalance", [address, "latest"]))
    
    def send_raw_transaction(self, raw_tx: str) -> str:
        return self.call("eth_sendRawTransaction", [raw_tx])
    
    def send_raw_transaction_sync(self, raw_tx: str) -> Optional[Receipt]:
        return _to_receipt(self.call("eth_sendRawTransactionSync", [raw_tx]))
    
    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        return _to_receipt(self.call("eth_getTransactionReceipt", [tx_hash]))
    
    def send_bundle(self, params: Dict[str, Any]) -> str:
        """Submit a bundle; relays answer with a bare id or {"bundleHash": id}."""
        result = self.call("eth_sendBundle", [params])
        if isinstance(result, dict):
            bundle_id = result.get("bundleHash") or result.get("bundleUuid")
            if bundle_id is None:
                raise RpcError(f"eth_sendBundle returned no bundle id: {result}")
            return bundle_id
        if not result:
            raise RpcError("eth_sendBundle returned an empty result")
        return result
