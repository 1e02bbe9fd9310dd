from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3


def is_address(address) -> bool:
    return isinstance(address, str) and Web3.is_address(address)


def recover_address(message: str, signature: str) -> str:
    """Return the lower-cased address whose key produced ``signature`` over ``message``."""
    message_encoded = encode_defunct(text=message)
    recovered_address = Account.recover_message(message_encoded, signature=signature)
    return recovered_address.lower()


def verify_signature(wallet_address: str, message: str, signature: str) -> bool:
    try:
        return recover_address(message, signature) == wallet_address.lower()
    except Exception:
        # Malformed signatures fail recovery; they are simply not a match.
        return False
