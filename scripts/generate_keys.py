#!/usr/bin/env python3
"""
Generate a benchmark sending key.

This script generates:
- A secp256k1 private key
- The matching checksummed address
- A .env snippet for the benchmark
"""

import argparse
import json
from pathlib import Path

from eth_account import Account
from eth_utils import to_hex


def generate_keys(output_dir: str = "./keys") -> dict:
    """
    Generate a new sending key.
    
    Args:
        output_dir: Directory to save the key info
        
    Returns:
        Dictionary with key info and address
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    
    account = Account.create()
    
    info = {
        "address": account.address,
        "private_key": to_hex(account.key),
    }
    
    info_path = output_path / "key_info.json"
    with open(info_path, "w") as f:
        json.dump(info, f, indent=2)
    info_path.chmod(0o600)
    
    return info


def main():
    parser = argparse.ArgumentParser(description="Generate a benchmark sending key")
    parser.add_argument(
        "--output-dir", "-o",
        default="./keys",
        help="Output directory for keys (default: ./keys)"
    )
    args = parser.parse_args()
    
    info = generate_keys(args.output_dir)
    
    print("\n🔑 Key generated")
    print(f"   Address: {info['address']}")
    print(f"   Saved to: {Path(args.output_dir) / 'key_info.json'}")
    print("\nAdd to your .env file:")
    print(f"   PRIVATE_KEY={info['private_key'][2:]}")
    print("\n⚠️  Fund this address on the target chain before running the benchmark.")


if __name__ == "__main__":
    main()
