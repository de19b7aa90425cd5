"""
Solana RPC client for balance, blockhash and account-data reads.
"""
import base64
import binascii
import logging
from typing import Any

from solders.hash import Hash
from solders.pubkey import Pubkey
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed

from .errors import LedgerReadError

logger = logging.getLogger(__name__)

# Characters that can appear in an ASCII-base64 account payload
B64_CHARS = set(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=\n\r\t ")


def looks_like_ascii_base64(data: bytes) -> bool:
    """Check if bytes contain an ASCII-base64 string rather than raw account data."""
    s = data.strip()
    if not s or len(s) % 4 != 0:
        return False
    return all(c in B64_CHARS for c in s)


def normalize_account_data(raw: Any) -> bytes:
    """
    Normalize account data returned by solana-py into raw bytes.

    Depending on version and encoding, data may arrive as raw bytes, a base64
    string, or a list ["<base64>", "base64"].

    Raises:
        ValueError: If the payload type is unknown or base64 is invalid
    """
    try:
        if isinstance(raw, list) and raw and isinstance(raw[0], str):
            return base64.b64decode(raw[0], validate=True)
        if isinstance(raw, str):
            return base64.b64decode(raw, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 account data: {e}") from e
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw)
    raise ValueError(f"Unexpected account data type: {type(raw).__name__} (expected bytes, str, or list)")


class SolanaClient:
    """Read-only client for the ledger RPC node."""

    def __init__(self, rpc_url: str, commitment: Commitment = Confirmed, timeout: float = 10.0):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = AsyncClient(rpc_url, commitment=commitment, timeout=timeout)

    async def get_balance(self, pubkey: Pubkey) -> int:
        """
        Get SOL balance in lamports.

        Raises:
            LedgerReadError: If the RPC call fails
        """
        try:
            resp = await self.client.get_balance(pubkey, commitment=self.commitment)
        except Exception as e:
            raise LedgerReadError(f"Error getting balance for {pubkey}: {e}") from e
        return resp.value

    async def get_recent_blockhash(self) -> Hash:
        """
        Get recent blockhash for transaction building.

        Raises:
            LedgerReadError: If the RPC call fails or returns no blockhash
        """
        try:
            result = await self.client.get_latest_blockhash(commitment=self.commitment)
        except Exception as e:
            raise LedgerReadError(f"Error getting recent blockhash: {e}") from e
        if not result.value:
            raise LedgerReadError("get_latest_blockhash returned no value")
        logger.debug(
            f"Recent blockhash {result.value.blockhash} "
            f"(last valid block height {result.value.last_valid_block_height})"
        )
        return result.value.blockhash

    async def get_account_data(self, pubkey: Pubkey) -> bytes:
        """
        Read raw account data.

        Raises:
            LedgerReadError: If the call fails, the account does not exist,
                or the payload cannot be normalized to bytes
        """
        try:
            account_info = await self.client.get_account_info(
                pubkey,
                commitment=self.commitment,
                encoding="base64"
            )
        except Exception as e:
            raise LedgerReadError(f"Error reading account {pubkey}: {e}") from e

        if account_info.value is None:
            raise LedgerReadError(f"Account {pubkey} not found")

        try:
            return normalize_account_data(account_info.value.data)
        except ValueError as e:
            raise LedgerReadError(f"Account {pubkey}: {e}") from e

    async def close(self):
        """Close RPC client."""
        await self.client.close()
