"""
Node Integration Layer.

Provides abstracted access to EVM JSON-RPC endpoints for fee quotes, account
queries, transaction and bundle submission.
"""

from txlatency.node.interface import NodeConnectionError, NodeInterface, Receipt, RpcError
from txlatency.node.jsonrpc import JsonRpcAdapter

__all__ = [
    "NodeInterface",
    "NodeConnectionError",
    "Receipt",
    "RpcError",
    "JsonRpcAdapter",
]
