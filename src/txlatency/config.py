"""
Configuration management for the latency benchmark.

Supports configuration via environment variables and .env files. Variable
names carry no prefix so an existing benchmark .env file works unchanged.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import structlog
from eth_utils import is_address
from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from txlatency.errors import ConfigurationError

logger = structlog.get_logger(__name__)

ZERO_ADDRESS = "0x" + "00" * 20

RUN_SETTINGS = (
    "REGION",
    "PRIVATE_KEY",
    "TO_ADDRESS",
    "BASE_NODE_ENDPOINT_1",
    "BASE_NODE_ENDPOINT_2",
)


@dataclass(frozen=True)
class TargetSettings:
    """Endpoint and pacing settings for one campaign target."""
    name: str
    url: str
    pacing_base_ms: int
    pacing_jitter_ms: int


class BenchConfig(BaseSettings):
    """
    Configuration settings for a benchmark run.
    
    Required settings default to None so that a missing value is reported by
    validate_required() together with every other missing value, rather than
    one at a time.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Run identity
    region: Optional[str] = Field(
        default=None,
        description="Region label used in output file names"
    )
    
    # Wallet settings
    private_key: Optional[str] = Field(
        default=None,
        description="Hex-encoded secp256k1 private key of the sending account"
    )
    to_address: Optional[str] = Field(
        default=None,
        description="Recipient of every value transfer"
    )
    transfer_value_wei: int = Field(
        default=100,
        ge=0,
        description="Value sent with every transfer, in wei"
    )
    
    # Endpoint settings
    base_node_endpoint_1: Optional[str] = Field(
        default=None,
        description="JSON-RPC URL of the fast-confirmation endpoint"
    )
    base_node_endpoint_2: Optional[str] = Field(
        default=None,
        description="JSON-RPC URL of the standard endpoint"
    )
    run_endpoint2_testing: bool = Field(
        default=True,
        description="Run a campaign against endpoint 2 after endpoint 1"
    )
    chain_id: Optional[int] = Field(
        default=None,
        description="Chain id override (queried from the endpoint if unset)"
    )
    rpc_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for a single JSON-RPC call"
    )
    
    # Campaign settings
    send_txn_sync: bool = Field(
        default=False,
        description="Use eth_sendRawTransactionSync instead of fire-and-poll"
    )
    polling_interval_ms: int = Field(
        default=50,
        ge=0,
        description="Sleep between receipt queries in fire-and-poll mode"
    )
    number_of_transactions: int = Field(
        default=100,
        ge=0,
        description="Transactions sent per campaign"
    )
    settling_delay_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Pause between two endpoint campaigns"
    )
    bundle_tx_count: int = Field(
        default=3,
        ge=1,
        description="Transactions per bundle for the bundle command"
    )
    
    # Output settings
    output_dir: str = Field(
        default="/data",
        description="Directory receiving one CSV file per endpoint"
    )
    
    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    
    @field_validator("polling_interval_ms", "number_of_transactions", mode="before")
    @classmethod
    def _default_when_unparseable(cls, value: Any, info: ValidationInfo) -> Any:
        """Keep the default when a count variable is not an integer."""
        if not isinstance(value, str):
            return value
        try:
            return int(value.strip())
        except ValueError:
            default = cls.model_fields[info.field_name].default
            logger.warning(
                "unparseable_setting_ignored",
                setting=info.field_name.upper(),
                value=value,
                default=default,
            )
            return default
    
    def validate_required(self, required: Sequence[str] = RUN_SETTINGS) -> None:
        """
        Check that every setting needed for a command is present.
        
        Args:
            required: Environment variable names that must be set
            
        Raises:
            ConfigurationError: Naming all missing or malformed settings
        """
        missing = [name for name in required if not getattr(self, name.lower())]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        
        if "TO_ADDRESS" in required and (
            not is_address(self.to_address) or self.to_address.lower() == ZERO_ADDRESS
        ):
            raise ConfigurationError(f"TO_ADDRESS is not a usable address: {self.to_address}")
    
    def campaign_targets(self) -> List[TargetSettings]:
        """
        Get the ordered campaign targets for this run.
        
        Endpoint 1 paces faster in sync mode since each call already waits
        for its receipt. Endpoint 2 paces on its block time.
        """
        if self.send_txn_sync:
            endpoint1_pacing = (200, 200)
        else:
            endpoint1_pacing = (600, 600)
        
        targets = [
            TargetSettings("endpoint1", self.base_node_endpoint_1, *endpoint1_pacing),
        ]
        if self.run_endpoint2_testing:
            targets.append(
                TargetSettings("endpoint2", self.base_node_endpoint_2, 4000, 1000)
            )
        return targets
    
    def endpoint_url(self, index: int) -> str:
        """Get the URL of endpoint 1 or 2."""
        urls = {1: self.base_node_endpoint_1, 2: self.base_node_endpoint_2}
        if index not in urls:
            raise ConfigurationError(f"Unknown endpoint index: {index}")
        if not urls[index]:
            raise ConfigurationError(f"BASE_NODE_ENDPOINT_{index} environment variable not set")
        return urls[index]


def load_config(**overrides) -> BenchConfig:
    """
    Build a configuration from the environment.
    
    Raises:
        ConfigurationError: If a value cannot be parsed
    """
    try:
        return BenchConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
