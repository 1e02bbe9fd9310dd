import asyncio
import logging
import aiohttp

logger = logging.getLogger(__name__)

GET_TOKEN_QUERY = """
query GetToken($tokenAddress: ID!) {
  token(id: $tokenAddress) {
    id
  }
}
"""


class SubgraphError(Exception):
    pass


class SubgraphClient:
    """GraphQL client for the token index that is the source of truth for token existence."""

    def __init__(self, endpoint: str, timeout: float = 10):
        self.endpoint = endpoint
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def query(self, query: str, variables: dict) -> dict:
        if not self.endpoint:
            raise SubgraphError("SUBGRAPHS_ENDPOINT is not configured")

        payload = {"query": query, "variables": variables}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.endpoint, json=payload) as resp:
                    resp.raise_for_status()
                    data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise SubgraphError(f"Subgraph request failed: {e}") from e

        if not isinstance(data, dict) or data.get("errors"):
            raise SubgraphError(f"Subgraph returned errors: {data.get('errors') if isinstance(data, dict) else data}")

        return data.get("data") or {}

    async def token_exists(self, token_address: str) -> bool:
        data = await self.query(GET_TOKEN_QUERY, {"tokenAddress": token_address})
        token = data.get("token")

        if not token:
            return False

        return str(token.get("id", "")).lower() == token_address.lower()
