"""
Abstract interface for EVM node integration.

Defines the contract for blockchain access that all node adapters must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Receipt:
    """Transaction receipt fields used by the benchmark."""
    tx_hash: str
    block_number: int
    block_hash: Optional[str] = None
    status: Optional[int] = None
    
    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Receipt":
        """
        Parse a JSON-RPC receipt object (quantities are hex strings).
        
        Raises:
            ValueError: If the block number is missing or not a hex quantity
        """
        block_number = data.get("blockNumber")
        status = data.get("status")
        if not isinstance(block_number, str):
            raise ValueError(f"Receipt has no block number: {data}")
        return cls(
            tx_hash=data.get("transactionHash", ""),
            block_number=int(block_number, 16),
            block_hash=data.get("blockHash"),
            status=int(status, 16) if isinstance(status, str) else None,
        )


class NodeInterface(ABC):
    """
    Abstract interface for EVM node access.
    
    This interface defines all blockchain operations needed by the benchmark:
    - Fee quotes and account queries
    - Transaction submission (fire-and-poll and submit-and-confirm)
    - Receipt lookup
    - Bundle submission
    """
    
    name: str = "node"
    
    @abstractmethod
    def connect(self) -> None:
        """
        Establish connection to the endpoint.
        
        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass
    
    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to the endpoint."""
        pass
    
    @abstractmethod
    def get_chain_id(self) -> int:
        """Get the chain identifier used for transaction signing."""
        pass
    
    @abstractmethod
    def get_block_number(self) -> int:
        """Get the current block height."""
        pass
    
    @abstractmethod
    def get_gas_price(self) -> int:
        """Get the suggested gas price in wei (used as the fee cap)."""
        pass
    
    @abstractmethod
    def get_max_priority_fee(self) -> int:
        """Get the suggested priority tip in wei."""
        pass
    
    @abstractmethod
    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """
        Get the account nonce.
        
        Args:
            address: Account address
            block: "pending" for the next pending nonce, "latest" for the
                last confirmed one
        """
        pass
    
    @abstractmethod
    def get_balance(self, address: str) -> int:
        """Get the account balance in wei."""
        pass
    
    @abstractmethod
    def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Broadcast a signed transaction without waiting for inclusion.
        
        Args:
            raw_tx: 0x-prefixed hex encoding of the signed transaction
            
        Returns:
            Transaction hash
        """
        pass
    
    @abstractmethod
    def send_raw_transaction_sync(self, raw_tx: str) -> Optional[Receipt]:
        """
        Broadcast a signed transaction and block until it is included.
        
        Args:
            raw_tx: 0x-prefixed hex encoding of the signed transaction
            
        Returns:
            The inclusion receipt, or None if the endpoint returned none
        """
        pass
    
    @abstractmethod
    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """
        Get a transaction receipt by hash.
        
        Returns:
            The receipt if the transaction is included, None otherwise
        """
        pass
    
    @abstractmethod
    def send_bundle(self, params: Dict[str, Any]) -> str:
        """
        Submit an atomic bundle.
        
        Args:
            params: eth_sendBundle payload
            
        Returns:
            Opaque bundle identifier
        """
        pass
    
    def __enter__(self) -> "NodeInterface":
        self.connect()
        return self
    
    def __exit__(self, *exc_info) -> None:
        self.disconnect()


class NodeConnectionError(Exception):
    """Raised when the endpoint cannot be reached."""
    pass


class RpcError(Exception):
    """Raised when the endpoint answers with a JSON-RPC error object."""
    
    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


# Failures a node call can surface: transport, JSON-RPC error, malformed quantity
NODE_ERRORS = (NodeConnectionError, RpcError, ValueError)
