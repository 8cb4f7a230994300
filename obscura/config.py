"""
Configuration for Ledger, Relay & Crypto Engine
"""
from typing import Dict, Any
import os
from pathlib import Path


def _load_env_value(name: str, default: str = "") -> str:
    """
    Load a setting from environment variables or the root .env file.
    Supports both underscore and dash separators.
    """
    dashed = name.replace("_", "-")
    for key in (name, dashed):
        value = os.getenv(key)
        if value:
            return value.strip()

    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        with env_path.open("r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue

                if "=" in line and (":" not in line or line.index("=") < line.index(":")):
                    key, val = line.split("=", 1)
                elif ":" in line:
                    key, val = line.split(":", 1)
                else:
                    continue

                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key in (name, dashed):
                    return val

    return default


# Ledger Configuration
LEDGER_CONFIG: Dict[str, Any] = {
    # Fixed 9x9 board, coordinates are 1-based on both axes
    "grid_size": 9,

    # Context id the ledger scopes every grant to (plays the role of a contract address)
    "context": _load_env_value("OBSCURA_CONTEXT", "0xec69ac0443ee44ed7ededf9977a3979efbc5b4c4"),

    # Handle layout version byte
    "scheme_version": 0,

    "chain_id": int(_load_env_value("OBSCURA_CHAIN_ID", "11155111")),
}


# Cryptography Configuration
CRYPTO_CONFIG: Dict[str, Any] = {
    "scheme": "BFV",
    "plain_modulus": 65537,
    # Identity ciphertexts pack one byte per slot
    "batch_size": 32,
    # Fold polynomial needs depth 9, plus headroom for scalar products
    "multiplicative_depth": 11,
    # Encrypted inputs are 8-bit unsigned integers
    "input_bits": 8,
}


# Relay Configuration
RELAY_CONFIG: Dict[str, Any] = {
    "host": _load_env_value("OBSCURA_RELAY_HOST", "0.0.0.0"),
    "port": int(_load_env_value("OBSCURA_RELAY_PORT", "9100")),
    "url": _load_env_value("OBSCURA_RELAY_URL", "http://localhost:9100"),

    "connection_timeout": 10,
    "decrypt_request_timeout": 120,

    # RelayUnavailable is retried with exponential backoff
    "max_retries": 3,
    "backoff_base": 0.5,
}


# Decryption Authorization Configuration
AUTH_CONFIG: Dict[str, Any] = {
    "domain_name": "Decryption",
    "domain_version": "1",
    "primary_type": "UserDecryptRequestVerification",
    # Relay verifier the signature domain is bound to
    "verifying_contract": _load_env_value("OBSCURA_VERIFYING_CONTRACT", "0x5ffdaab0373e62e2ea2944776209aef29e631a64"),
    "default_duration_days": 10,
    "max_duration_days": 365,
    # Accepted drift between requester and relay clocks (seconds)
    "clock_skew": 300,
}


# Logging Configuration
LOG_CONFIG: Dict[str, Any] = {
    "log_dir": _load_env_value("OBSCURA_LOG_DIR", "logs"),
    "log_file": "ledger.log",
}
