from .secret_store import SecretChallengeStore
from .gate import AuthGate, ensure_user
