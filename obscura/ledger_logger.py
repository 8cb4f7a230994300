"""
Ledger Logger - Records committed ledger operations to file
Only logs identities and ciphertext handles, never decrypted values
"""
import os
from datetime import datetime
from typing import Sequence

from obscura.config import LOG_CONFIG


class LedgerLogger:
    """Logs ledger commits and rejections to file"""

    def __init__(self, context: str, log_dir: str = None):
        self.context = context
        self.log_dir = log_dir or LOG_CONFIG["log_dir"]
        self.log_file = os.path.join(self.log_dir, LOG_CONFIG["log_file"])

        # Create logs directory if not exists
        os.makedirs(self.log_dir, exist_ok=True)

        # Initialize/clear log file
        with open(self.log_file, 'w', encoding='utf-8') as f:
            f.write(f"=== Obscura Ledger Log ===\n")
            f.write(f"Context: {context}\n")
            f.write(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write("=" * 50 + "\n\n")

    def log(self, message: str):
        """Write a log message with timestamp"""
        timestamp = datetime.now().strftime('%H:%M:%S')
        with open(self.log_file, 'a', encoding='utf-8') as f:
            f.write(f"[{timestamp}] {message}\n")

    def log_section(self, title: str):
        """Write a section header"""
        with open(self.log_file, 'a', encoding='utf-8') as f:
            f.write("\n" + "=" * 50 + "\n")
            f.write(f"{title}\n")
            f.write("=" * 50 + "\n")

    def log_commit(self, sequence: int, operation: str, identity: str, handles: Sequence[str]):
        """Log a committed operation with the handles it produced"""
        self.log(f"#{sequence} {operation} by {identity}")
        for handle in handles:
            self.log(f"  → {handle}")

    def log_rejected(self, operation: str, identity: str, error: Exception):
        self.log(f"REJECTED {operation} by {identity}: {type(error).__name__}: {error}")
