"""
Test suite for transaction construction functionality.

Tests fee quoting, nonce selection and signing of transfer transactions.
"""

import pytest
from eth_account import Account

from txlatency.errors import FeeQuoteError, NonceError, SigningError
from txlatency.node.interface import NodeConnectionError, RpcError
from txlatency.tx.builder import NonceSource, TransactionBuilder
from txlatency.tx.signer import TransactionSigner, generate_test_key

from conftest import TEST_PRIVATE_KEY


# ============================================================================
# Test Transaction Signer
# ============================================================================

class TestTransactionSigner:
    """Tests for transaction signing functionality."""
    
    def test_generate_test_key(self):
        """Test generating a random test key."""
        signer = generate_test_key()
        
        assert signer.is_loaded is True
        assert signer.address.startswith("0x")
    
    def test_from_key_derives_address(self, test_signer):
        """Test that the address matches the key."""
        assert test_signer.address == Account.from_key(TEST_PRIVATE_KEY).address
    
    def test_malformed_key_raises_signing_error(self):
        """Test that a malformed key is rejected."""
        with pytest.raises(SigningError, match="Failed to load private key"):
            TransactionSigner.from_key("0x1234")
    
    def test_signer_not_loaded(self):
        """Test that signer raises error when key not loaded."""
        signer = TransactionSigner()
        
        assert signer.is_loaded is False
        with pytest.raises(SigningError, match="No signing key loaded"):
            signer.sign_transaction({"nonce": 0})
    
    def test_invalid_fields_raise_signing_error(self, test_signer):
        """Test that fields the signer cannot encode surface as SigningError."""
        with pytest.raises(SigningError):
            test_signer.sign_transaction({
                "type": 2,
                "chainId": 1,
                "nonce": 0,
                "maxFeePerGas": "not a number",
                "maxPriorityFeePerGas": 1,
                "gas": 21000,
                "to": "0x" + "00" * 20,
                "value": 0,
            })


# ============================================================================
# Test Transaction Builder
# ============================================================================

class TestTransactionBuilder:
    """Tests for the transfer builder."""
    
    def test_build_transfer_uses_endpoint_quotes(self, builder, intent, mock_node):
        """Test that cap and tip come straight from the endpoint, no markup."""
        mock_node.gas_price = 100
        mock_node.max_priority_fee = 2
        
        signed = builder.build_transfer(intent)
        
        assert signed.max_fee_per_gas == 100
        assert signed.max_priority_fee_per_gas == 2
        assert signed.nonce == 5
    
    def test_signed_encoding_recovers_sender(self, builder, intent):
        """Test that the signed bytes are a type-2 envelope from the sender."""
        signed = builder.build_transfer(intent)
        
        assert signed.raw[0] == 2
        assert Account.recover_transaction(signed.raw) == intent.sender
    
    def test_hash_derived_from_signed_encoding(self, builder, intent):
        """Test that the hash is the keccak of the signed envelope."""
        from eth_utils import keccak, to_hex
        
        signed = builder.build_transfer(intent)
        
        assert signed.tx_hash == to_hex(keccak(signed.raw))
        assert signed.raw_hex == to_hex(signed.raw)
    
    def test_signing_is_deterministic(self, builder, intent):
        """Test that identical inputs produce the identical hash."""
        first = builder.build_transfer(intent, nonce=7)
        second = builder.build_transfer(intent, nonce=7)
        
        assert first.tx_hash == second.tx_hash
    
    def test_nonce_sources(self, builder, intent, mock_node):
        """Test pending versus confirmed nonce selection."""
        mock_node.pending_nonce = 9
        mock_node.confirmed_nonce = 6
        
        assert builder.build_transfer(intent, NonceSource.PENDING).nonce == 9
        assert builder.build_transfer(intent, NonceSource.CONFIRMED).nonce == 6
        assert "get_transaction_count:latest" in mock_node.calls
    
    def test_explicit_nonce_skips_query(self, builder, intent, mock_node):
        """Test that a pre-allocated nonce is used without a nonce query."""
        signed = builder.build_transfer(intent, nonce=42)
        
        assert signed.nonce == 42
        assert not any(c.startswith("get_transaction_count") for c in mock_node.calls)
    
    def test_gas_price_failure(self, builder, intent, mock_node):
        """Test that a failed gas price query raises FeeQuoteError."""
        mock_node.failures["get_gas_price"] = NodeConnectionError("down")
        
        with pytest.raises(FeeQuoteError, match="gas price"):
            builder.build_transfer(intent)
    
    def test_tip_failure(self, builder, intent, mock_node):
        """Test that a failed tip query raises FeeQuoteError."""
        mock_node.failures["get_max_priority_fee"] = RpcError("method not found", code=-32601)
        
        with pytest.raises(FeeQuoteError, match="priority fee"):
            builder.build_transfer(intent)
    
    def test_nonce_failure(self, builder, intent, mock_node):
        """Test that a failed nonce query raises NonceError."""
        mock_node.failures["get_transaction_count:pending"] = NodeConnectionError("timeout")
        
        with pytest.raises(NonceError):
            builder.build_transfer(intent)
    
    def test_unloaded_signer(self, mock_node, intent):
        """Test that building with no key raises SigningError."""
        builder = TransactionBuilder(mock_node, TransactionSigner())
        
        with pytest.raises(SigningError):
            builder.build_transfer(intent)
