"""
Address Lookup Table (ALT) resolution.

All tables referenced by a swap are read concurrently; the build waits on a
single join point and any failed read fails the whole resolution.
"""
import asyncio
import base64
import logging
from typing import Iterable, List

from solders.address_lookup_table_account import AddressLookupTable, AddressLookupTableAccount
from solders.pubkey import Pubkey

from .errors import LookupTableUnavailable
from .instruction_converter import parse_pubkey
from .solana_client import looks_like_ascii_base64

logger = logging.getLogger(__name__)


def decode_lookup_table(key: Pubkey, data: bytes) -> AddressLookupTableAccount:
    """
    Decode on-chain ALT account data into an AddressLookupTableAccount.

    Raw bytes are tried first; bytes that turn out to hold ASCII-base64 are
    decoded and parsed again.

    Raises:
        LookupTableUnavailable: If the data is not a valid lookup table
    """
    try:
        table = AddressLookupTable.deserialize(data)
    except Exception as e:
        if not looks_like_ascii_base64(data):
            raise LookupTableUnavailable(f"Cannot decode ALT {key}: {e}") from e
        try:
            table = AddressLookupTable.deserialize(base64.b64decode(data.strip(), validate=True))
        except Exception as e2:
            raise LookupTableUnavailable(f"Cannot decode ALT {key}: {e2}") from e2
        logger.debug(f"ALT {key}: decoded from bytes containing ASCII-base64")

    return AddressLookupTableAccount(key, table.addresses)


class LookupTableResolver:
    """
    Fetches and decodes lookup tables through a ledger reader.

    The reader needs one coroutine method: get_account_data(pubkey) -> bytes
    (SolanaClient provides it).
    """

    def __init__(self, reader):
        self.reader = reader

    async def _load(self, address: str) -> AddressLookupTableAccount:
        try:
            key = parse_pubkey(address, "lookup table address")
            data = await self.reader.get_account_data(key)
        except LookupTableUnavailable:
            raise
        except Exception as e:
            raise LookupTableUnavailable(f"Cannot load ALT {address}: {e}") from e
        account = decode_lookup_table(key, data)
        logger.debug(f"Loaded ALT {address} with {len(account.addresses)} addresses")
        return account

    async def resolve(self, addresses: Iterable[str]) -> List[AddressLookupTableAccount]:
        """
        Resolve lookup tables concurrently.

        Args:
            addresses: ALT addresses (base58); duplicates are read once

        Returns:
            Tables in first-seen input order (empty list for empty input,
            without touching the network)

        Raises:
            LookupTableUnavailable: If any single read or decode fails
        """
        seen = set()
        unique = [a for a in addresses if not (a in seen or seen.add(a))]
        if not unique:
            return []

        tasks = [asyncio.ensure_future(self._load(address)) for address in unique]
        try:
            tables = await asyncio.gather(*tasks)
        except BaseException:
            # Remaining reads are abandoned on first failure
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return list(tables)
