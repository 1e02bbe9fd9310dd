from typing import Any, Dict


class FeedError(Exception):
    """Base error rendered to the client as ``payload()`` with ``status_code``."""

    status_code = 400
    key = "error"
    default_message = "Bad request"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> Dict[str, Any]:
        return {self.key: self.message}


class InvalidAddress(FeedError):
    default_message = "Invalid address"


class MissingCredential(FeedError):
    default_message = "Missing address or signature in headers"


class InvalidSignature(FeedError):
    status_code = 401
    default_message = "Invalid signature"


class InvalidPayload(FeedError):
    default_message = "Invalid JSON payload"


class TokenNotFound(FeedError):
    status_code = 404
    key = "token"
    default_message = "Token not found"


class MessageNotFound(FeedError):
    status_code = 404
    key = "message"
    default_message = "Message not found"


class InternalError(FeedError):
    """Datastore or upstream failure. The cause is logged, never sent to the client."""
    status_code = 500
    default_message = "Internal server error"
