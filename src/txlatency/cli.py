"""
Command-line interface for the latency benchmark.

Provides commands for running endpoint campaigns and submitting bundles.
"""

import argparse
import logging
import sys
from typing import Dict, List

import structlog

from txlatency import __version__
from txlatency.config import BenchConfig, load_config
from txlatency.core.bundle import BundleAssembler
from txlatency.core.campaign import (
    Campaign,
    CampaignRunner,
    CampaignTarget,
    PacingPolicy,
    RunContext,
)
from txlatency.core.dispatcher import SubmissionMode
from txlatency.errors import ConfigurationError, LatencyError
from txlatency.node.interface import NODE_ERRORS, NodeInterface
from txlatency.node.jsonrpc import JsonRpcAdapter
from txlatency.state.recorder import StatsRecorder
from txlatency.tx.builder import TransactionBuilder
from txlatency.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)

BUNDLE_SETTINGS = ("PRIVATE_KEY", "TO_ADDRESS")


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stdout,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="txlatency",
        description="Transaction inclusion latency benchmark for EVM endpoints",
    )
    
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    
    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    
    # Run command
    run_parser = subparsers.add_parser("run", help="Run endpoint campaigns and write CSV stats")
    run_parser.add_argument(
        "--transactions",
        type=int,
        help="Transactions per endpoint (default: NUMBER_OF_TRANSACTIONS or 100)",
    )
    mode_group = run_parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--sync",
        dest="sync",
        action="store_const",
        const=True,
        help="Use eth_sendRawTransactionSync",
    )
    mode_group.add_argument(
        "--async",
        dest="sync",
        action="store_const",
        const=False,
        help="Send and poll for the receipt",
    )
    run_parser.add_argument(
        "--skip-endpoint2",
        action="store_true",
        help="Only run the endpoint 1 campaign",
    )
    run_parser.add_argument(
        "--output-dir",
        help="Directory for CSV output (default: OUTPUT_DIR or /data)",
    )
    _add_logging_args(run_parser)
    
    # Bundle command
    bundle_parser = subparsers.add_parser("bundle", help="Submit one bundle targeting the next block")
    bundle_parser.add_argument(
        "--txs",
        type=int,
        help="Transactions in the bundle (default: BUNDLE_TX_COUNT or 3)",
    )
    bundle_parser.add_argument(
        "--endpoint",
        type=int,
        choices=[1, 2],
        default=1,
        help="Endpoint receiving the bundle (default: 1)",
    )
    bundle_parser.add_argument("--min-flashblock", type=int, help="Earliest flashblock index")
    bundle_parser.add_argument("--max-flashblock", type=int, help="Latest flashblock index")
    bundle_parser.add_argument("--min-timestamp", type=int, help="Earliest block timestamp")
    bundle_parser.add_argument("--max-timestamp", type=int, help="Latest block timestamp")
    bundle_parser.add_argument("--replacement-uuid", help="Replacement identifier")
    _add_logging_args(bundle_parser)
    
    return parser


def _add_logging_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )


def config_overrides(args: argparse.Namespace) -> dict:
    """Map command-line flags onto configuration fields."""
    mapping = {
        "transactions": "number_of_transactions",
        "sync": "send_txn_sync",
        "output_dir": "output_dir",
        "txs": "bundle_tx_count",
        "log_level": "log_level",
        "log_json": "log_json",
    }
    overrides = {
        field: getattr(args, flag)
        for flag, field in mapping.items()
        if getattr(args, flag, None) is not None
    }
    if getattr(args, "skip_endpoint2", False):
        overrides["run_endpoint2_testing"] = False
    return overrides


def resolve_chain_id(config: BenchConfig, node: NodeInterface) -> int:
    """Get the configured chain id, or query it from the node."""
    if config.chain_id is not None:
        return config.chain_id
    try:
        return node.get_chain_id()
    except NODE_ERRORS as e:
        raise ConfigurationError(f"Failed to get chain id from {node.name}: {e}") from e


def run_benchmark(config: BenchConfig) -> List[Campaign]:
    """Run every configured campaign and write one CSV per target."""
    config.validate_required()
    signer = TransactionSigner.from_key(config.private_key)
    
    settings = config.campaign_targets()
    nodes: Dict[str, JsonRpcAdapter] = {
        s.name: JsonRpcAdapter(s.url, name=s.name, timeout=config.rpc_timeout_seconds)
        for s in settings
    }
    # Chain identity comes from the standard endpoint even when its campaign is skipped
    chain_node = nodes.get("endpoint2") or JsonRpcAdapter(
        config.endpoint_url(2), name="endpoint2", timeout=config.rpc_timeout_seconds
    )
    
    try:
        for node in nodes.values():
            node.connect()
        chain_id = resolve_chain_id(config, chain_node)
        
        mode = SubmissionMode.SYNC if config.send_txn_sync else SubmissionMode.ASYNC
        targets = [
            CampaignTarget(
                name=s.name,
                node=nodes[s.name],
                mode=mode,
                count=config.number_of_transactions,
                pacing=PacingPolicy(s.pacing_base_ms, s.pacing_jitter_ms),
                polling_interval_ms=config.polling_interval_ms,
            )
            for s in settings
        ]
        
        context = RunContext(
            chain_id=chain_id,
            signer=signer,
            recipient=config.to_address,
            value=config.transfer_value_wei,
        )
        logger.info(
            "benchmark_starting",
            chain_id=chain_id,
            mode=mode.value,
            transactions=config.number_of_transactions,
            polling_interval_ms=config.polling_interval_ms,
            targets=[t.name for t in targets],
        )
        
        campaigns = CampaignRunner(context).run_all(targets, config.settling_delay_seconds)
    finally:
        for node in nodes.values():
            node.disconnect()
        chain_node.disconnect()
    
    recorder = StatsRecorder(config.output_dir)
    for campaign in campaigns:
        recorder.write(recorder.path_for(campaign.target_name, config.region), campaign.results)
    
    logger.info(
        "benchmark_completed",
        transactions=config.number_of_transactions,
        errors={c.target_name: c.errors for c in campaigns},
    )
    return campaigns


def submit_bundle(config: BenchConfig, args: argparse.Namespace) -> str:
    """Assemble and submit one bundle to the chosen endpoint."""
    config.validate_required(BUNDLE_SETTINGS)
    signer = TransactionSigner.from_key(config.private_key)
    
    with JsonRpcAdapter(
        config.endpoint_url(args.endpoint),
        name=f"endpoint{args.endpoint}",
        timeout=config.rpc_timeout_seconds,
    ) as node:
        context = RunContext(
            chain_id=resolve_chain_id(config, node),
            signer=signer,
            recipient=config.to_address,
            value=config.transfer_value_wei,
        )
        assembler = BundleAssembler(TransactionBuilder(node, signer))
        bundle = assembler.assemble_and_submit(
            context.intent,
            config.bundle_tx_count,
            min_flashblock_number=args.min_flashblock,
            max_flashblock_number=args.max_flashblock,
            min_timestamp=args.min_timestamp,
            max_timestamp=args.max_timestamp,
            replacement_uuid=args.replacement_uuid,
        )
    
    print(f"Bundle ID: {bundle.bundle_id}")
    print(f"Target block: {bundle.descriptor.block_number}")
    for nonce, tx_hash in zip(bundle.nonces, bundle.tx_hashes):
        print(f"  nonce {nonce}: {tx_hash}")
    return bundle.bundle_id


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()
    
    if not args.command:
        parser.print_help()
        sys.exit(1)
    
    try:
        config = load_config(**config_overrides(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)
    
    setup_logging(config.log_level, config.log_json)
    
    try:
        if args.command == "run":
            run_benchmark(config)
        elif args.command == "bundle":
            submit_bundle(config, args)
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        sys.exit(2)
    except LatencyError as e:
        logger.error("command_failed", command=args.command, error_type=type(e).__name__, error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
