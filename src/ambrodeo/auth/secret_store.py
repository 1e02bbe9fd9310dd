import secrets
import threading
from datetime import datetime
from typing import Dict, Optional, Tuple


class SecretChallengeStore:
    """
    Per-address challenges that a wallet signs to authenticate writes.

    Secrets live in process memory only. Re-issuing overwrites the previous secret;
    nothing expires and a secret stays valid until it is replaced.
    """

    def __init__(self):
        self._secrets: Dict[str, Tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def issue(self, address: str) -> str:
        secret = secrets.token_hex(32)
        with self._lock:
            self._secrets[address.lower()] = (secret, datetime.utcnow())
        return secret

    def get(self, address: str) -> Optional[str]:
        entry = self._secrets.get(address.lower())
        return entry[0] if entry else None

    def issued_at(self, address: str) -> Optional[datetime]:
        entry = self._secrets.get(address.lower())
        return entry[1] if entry else None

    def __len__(self):
        return len(self._secrets)
