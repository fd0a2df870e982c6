"""Settings from the environment (and .env)"""

import hashlib
import hmac
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from shopkeep.receipt.render import DEFAULT_FOOTER, DEFAULT_SHOP_NAME


def hash_passphrase(passphrase: str) -> str:
    """SHA-256 hex digest, the format of SHOPKEEP_PASSPHRASE_HASH"""
    return hashlib.sha256(passphrase.encode("utf-8")).hexdigest()


@dataclass
class Settings:
    db_path: Path
    shop_name: str = DEFAULT_SHOP_NAME
    receipt_footer: str = DEFAULT_FOOTER
    import_url: Optional[str] = None
    passphrase_hash: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """Load .env (default: nearest one above the working directory) and read SHOPKEEP_*.

        Real environment variables win over values in the file.
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))
        return cls(
            db_path=Path(os.getenv("SHOPKEEP_DB") or Path.cwd() / "shopkeep.db"),
            shop_name=os.getenv("SHOPKEEP_SHOP_NAME") or DEFAULT_SHOP_NAME,
            receipt_footer=os.getenv("SHOPKEEP_RECEIPT_FOOTER", DEFAULT_FOOTER),
            import_url=os.getenv("SHOPKEEP_IMPORT_URL") or None,
            passphrase_hash=os.getenv("SHOPKEEP_PASSPHRASE_HASH") or None,
            log_level=(os.getenv("SHOPKEEP_LOG_LEVEL") or "WARNING").upper(),
        )

    def check_passphrase(self, passphrase: str) -> bool:
        """True when the passphrase matches. Always False if none is configured."""
        if not self.passphrase_hash:
            return False
        return hmac.compare_digest(hash_passphrase(passphrase), self.passphrase_hash.lower())
