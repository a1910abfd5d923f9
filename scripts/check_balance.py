#!/usr/bin/env python3
"""
Check balance and nonces of the benchmark sender on each endpoint.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from txlatency.config import load_config
from txlatency.errors import LatencyError
from txlatency.node.interface import NODE_ERRORS
from txlatency.node.jsonrpc import JsonRpcAdapter
from txlatency.tx.signer import TransactionSigner

WEI_PER_ETH = 10 ** 18


def check_balance(endpoints: dict, address: str) -> None:
    """Print balance, confirmed and pending nonce per endpoint."""
    print(f"\n📬 Sender Address: {address}")
    
    for name, url in endpoints.items():
        with JsonRpcAdapter(url, name=name) as node:
            try:
                balance = node.get_balance(address)
                confirmed = node.get_transaction_count(address, "latest")
                pending = node.get_transaction_count(address, "pending")
            except NODE_ERRORS as e:
                print(f"\n❌ {name}: {e}")
                continue
        
        print(f"\n💰 {name}:")
        print(f"   Balance: {balance / WEI_PER_ETH:.6f} ETH ({balance} wei)")
        print(f"   Confirmed nonce: {confirmed}")
        print(f"   Pending nonce: {pending}")
        if pending > confirmed:
            print(f"   ⚠️  {pending - confirmed} transaction(s) still pending")


def main():
    parser = argparse.ArgumentParser(description="Check benchmark sender balance")
    parser.add_argument(
        "--address",
        help="Address to check (default: derived from PRIVATE_KEY)",
    )
    args = parser.parse_args()
    
    try:
        config = load_config()
        address = args.address or TransactionSigner.from_key(config.private_key or "").address
    except LatencyError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
    
    endpoints = {
        name: url
        for name, url in (
            ("endpoint1", config.base_node_endpoint_1),
            ("endpoint2", config.base_node_endpoint_2),
        )
        if url
    }
    if not endpoints:
        print("❌ Error: no BASE_NODE_ENDPOINT_1 / BASE_NODE_ENDPOINT_2 configured")
        sys.exit(1)
    
    check_balance(endpoints, address)


if __name__ == "__main__":
    main()
