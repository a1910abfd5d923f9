"""
Pytest configuration and shared fixtures for the test suite.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from eth_utils import keccak, to_checksum_address, to_hex

from txlatency.config import BenchConfig
from txlatency.core.campaign import RunContext
from txlatency.node.interface import NodeInterface, Receipt
from txlatency.tx.builder import TransactionBuilder, TransferIntent
from txlatency.tx.signer import TransactionSigner


# Well-known throwaway key; never fund it on a real chain
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_RECIPIENT = to_checksum_address("0x" + "ab" * 20)
TEST_CHAIN_ID = 8453


# ============================================================================
# Simulated Time
# ============================================================================

class FakeClock:
    """
    Wall clock, monotonic timer and sleep that only advance when told to.
    
    step_wall() moves the wall clock alone, like an NTP correction.
    """
    
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.elapsed = timedelta(0)
        self.sleeps: List[float] = []
    
    def __call__(self) -> datetime:
        return self.now
    
    def monotonic(self) -> float:
        return self.elapsed.total_seconds()
    
    def advance(self, delta: timedelta) -> None:
        self.now += delta
        self.elapsed += delta
    
    def step_wall(self, delta: timedelta) -> None:
        self.now += delta
    
    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(timedelta(seconds=seconds))


# ============================================================================
# Mock Node Interface
# ============================================================================

class MockNode(NodeInterface):
    """
    Mock node interface for testing.
    
    Every call is appended to `calls`; setting `failures[method]` makes that
    method raise the given exception.
    """
    
    def __init__(self, name: str = "mock", clock: Optional[FakeClock] = None):
        self.name = name
        self.clock = clock
        self.chain_id = TEST_CHAIN_ID
        self.block_number = 41
        self.gas_price = 100
        self.max_priority_fee = 2
        self.pending_nonce = 5
        self.confirmed_nonce = 5
        self.balance = 10 ** 18
        self.receipt_block = 42
        self.sync_delay = timedelta(0)
        # Wall-clock correction applied during the sync call
        self.wall_step = timedelta(0)
        self.sync_returns_receipt = True
        # Receipt queries that miss before the receipt appears; None = never
        self.receipt_misses: Optional[int] = 0
        self.bundle_id = "0xbundle"
        
        self.calls: List[str] = []
        self.failures: Dict[str, Exception] = {}
        self.sent_raw: List[str] = []
        self.bundles: List[Dict[str, Any]] = []
        self.receipt_queries = 0
        self._connected = False
    
    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]
    
    def _receipt_for(self, raw_tx: str) -> Receipt:
        return Receipt(tx_hash=to_hex(keccak(hexstr=raw_tx)), block_number=self.receipt_block, status=1)
    
    def connect(self) -> None:
        self._connected = True
    
    def disconnect(self) -> None:
        self._connected = False
    
    def get_chain_id(self) -> int:
        self._record("get_chain_id")
        return self.chain_id
    
    def get_block_number(self) -> int:
        self._record("get_block_number")
        return self.block_number
    
    def get_gas_price(self) -> int:
        self._record("get_gas_price")
        return self.gas_price
    
    def get_max_priority_fee(self) -> int:
        self._record("get_max_priority_fee")
        return self.max_priority_fee
    
    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        self._record(f"get_transaction_count:{block}")
        return self.pending_nonce if block == "pending" else self.confirmed_nonce
    
    def get_balance(self, address: str) -> int:
        self._record("get_balance")
        return self.balance
    
    def send_raw_transaction(self, raw_tx: str) -> str:
        self._record("send_raw_transaction")
        self.sent_raw.append(raw_tx)
        self.pending_nonce += 1
        self.receipt_queries = 0
        return to_hex(keccak(hexstr=raw_tx))
    
    def send_raw_transaction_sync(self, raw_tx: str) -> Optional[Receipt]:
        self._record("send_raw_transaction_sync")
        self.sent_raw.append(raw_tx)
        if self.clock is not None:
            self.clock.advance(self.sync_delay)
            self.clock.step_wall(self.wall_step)
        if not self.sync_returns_receipt:
            return None
        self.pending_nonce += 1
        self.confirmed_nonce += 1
        return self._receipt_for(raw_tx)
    
    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        self._record("get_transaction_receipt")
        self.receipt_queries += 1
        if self.receipt_misses is None or self.receipt_queries <= self.receipt_misses:
            return None
        return Receipt(tx_hash=tx_hash, block_number=self.receipt_block, status=1)
    
    def send_bundle(self, params: Dict[str, Any]) -> str:
        self._record("send_bundle")
        self.bundles.append(params)
        return self.bundle_id


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """Create a simulated clock."""
    return FakeClock()


@pytest.fixture
def mock_node(clock) -> MockNode:
    """Create a mock node bound to the simulated clock."""
    return MockNode(clock=clock)


@pytest.fixture
def test_signer() -> TransactionSigner:
    """Create a signer with the fixed test key."""
    return TransactionSigner.from_key(TEST_PRIVATE_KEY)


@pytest.fixture
def intent(test_signer) -> TransferIntent:
    """Create the transfer intent used across tests."""
    return TransferIntent(
        sender=test_signer.address,
        recipient=TEST_RECIPIENT,
        value=100,
        chain_id=TEST_CHAIN_ID,
    )


@pytest.fixture
def builder(mock_node, test_signer) -> TransactionBuilder:
    """Create a transaction builder bound to the mock node."""
    return TransactionBuilder(mock_node, test_signer)


@pytest.fixture
def run_context(test_signer) -> RunContext:
    """Create a run context for campaign tests."""
    return RunContext(
        chain_id=TEST_CHAIN_ID,
        signer=test_signer,
        recipient=TEST_RECIPIENT,
        value=100,
    )


@pytest.fixture
def test_config(tmp_path) -> BenchConfig:
    """Create a complete test configuration (ignores any local .env)."""
    return BenchConfig(
        _env_file=None,
        region="test-region",
        private_key=TEST_PRIVATE_KEY,
        to_address=TEST_RECIPIENT,
        base_node_endpoint_1="http://fast.example",
        base_node_endpoint_2="http://standard.example",
        number_of_transactions=2,
        settling_delay_seconds=0,
        output_dir=str(tmp_path),
        log_level="DEBUG",
    )
