"""Client configuration for fhevm-client."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import ConfigurationError

SEPOLIA_CHAIN_ID = 11155111
MAINNET_CHAIN_ID = 1
HARDHAT_CHAIN_ID = 31337

DEFAULT_EXPLORER_URLS = {
    MAINNET_CHAIN_ID: "https://etherscan.io/tx/",
    SEPOLIA_CHAIN_ID: "https://sepolia.etherscan.io/tx/",
}


@dataclass
class ClientConfig:
    """Connection, confirmation and timeout settings."""

    rpc_url: str = "http://localhost:8545"
    chain_id: int = HARDHAT_CHAIN_ID
    confirmations: int = 2
    default_max_batch_size: int = 10
    confirmation_timeout: float = 300.0  # seconds
    confirmation_poll_interval: float = 2.0  # seconds
    decryption_timeout: float = 120.0  # seconds
    encryption_timeout: float = 60.0  # seconds
    gas_limit: Optional[int] = None
    signature_duration_days: int = 365
    explorer_urls: Dict[int, str] = field(
        default_factory=lambda: dict(DEFAULT_EXPLORER_URLS)
    )

    def __post_init__(self):
        for key in ("confirmations", "default_max_batch_size", "signature_duration_days"):
            value = getattr(self, key)
            if not isinstance(value, int) or value < 1:
                raise ConfigurationError(
                    f"{key} must be a positive integer",
                    config_key=key,
                    config_value=value,
                )
        for key in (
            "confirmation_timeout",
            "confirmation_poll_interval",
            "decryption_timeout",
            "encryption_timeout",
        ):
            value = getattr(self, key)
            if value <= 0:
                raise ConfigurationError(
                    f"{key} must be positive", config_key=key, config_value=value
                )
        if self.gas_limit is not None and self.gas_limit <= 0:
            raise ConfigurationError(
                "gas_limit must be positive when set",
                config_key="gas_limit",
                config_value=self.gas_limit,
            )

    def explorer_url(self, transaction_hash: str) -> str:
        """Block explorer link for a transaction (mainnet Etherscan when unknown)."""
        base = self.explorer_urls.get(
            self.chain_id, DEFAULT_EXPLORER_URLS[MAINNET_CHAIN_ID]
        )
        return f"{base}{transaction_hash}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "rpc_url": self.rpc_url,
            "chain_id": self.chain_id,
            "confirmations": self.confirmations,
            "default_max_batch_size": self.default_max_batch_size,
            "confirmation_timeout": self.confirmation_timeout,
            "confirmation_poll_interval": self.confirmation_poll_interval,
            "decryption_timeout": self.decryption_timeout,
            "encryption_timeout": self.encryption_timeout,
            "gas_limit": self.gas_limit,
            "signature_duration_days": self.signature_duration_days,
            "explorer_urls": {str(k): v for k, v in self.explorer_urls.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Create from dictionary."""
        explorer_urls = data.get("explorer_urls")
        return cls(
            rpc_url=data.get("rpc_url", "http://localhost:8545"),
            chain_id=int(data.get("chain_id", HARDHAT_CHAIN_ID)),
            confirmations=data.get("confirmations", 2),
            default_max_batch_size=data.get("default_max_batch_size", 10),
            confirmation_timeout=data.get("confirmation_timeout", 300.0),
            confirmation_poll_interval=data.get("confirmation_poll_interval", 2.0),
            decryption_timeout=data.get("decryption_timeout", 120.0),
            encryption_timeout=data.get("encryption_timeout", 60.0),
            gas_limit=data.get("gas_limit"),
            signature_duration_days=data.get("signature_duration_days", 365),
            explorer_urls=(
                {int(k): v for k, v in explorer_urls.items()}
                if explorer_urls is not None
                else dict(DEFAULT_EXPLORER_URLS)
            ),
        )
