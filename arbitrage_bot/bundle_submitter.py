"""
Jito bundle submission for atomic, all-or-nothing execution.
"""
import base64
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import base58
import httpx
from solders.transaction import VersionedTransaction

from .constants import DEFAULT_JITO_RPC_URL, MAX_BUNDLE_SIZE
from .errors import InsufficientFunds, SubmissionError
from .transaction_assembler import AssembledTransaction

logger = logging.getLogger(__name__)

ENCODINGS = ("base58", "base64")


def encode_transaction(tx: VersionedTransaction, encoding: str = "base58") -> str:
    """Serialize a transaction to wire bytes, then to text."""
    raw = bytes(tx)
    if encoding == "base58":
        return base58.b58encode(raw).decode('utf-8')
    if encoding == "base64":
        return base64.b64encode(raw).decode('utf-8')
    raise ValueError(f"Unsupported encoding: {encoding}")


def decode_transaction(encoded: str, encoding: str = "base58") -> VersionedTransaction:
    """Inverse of encode_transaction."""
    if encoding == "base58":
        raw = base58.b58decode(encoded)
    elif encoding == "base64":
        raw = base64.b64decode(encoded, validate=True)
    else:
        raise ValueError(f"Unsupported encoding: {encoding}")
    return VersionedTransaction.from_bytes(raw)


class BundleSubmitter:
    """JSON-RPC client for the Jito block engine bundles endpoint."""

    def __init__(
        self,
        block_engine_url: str = DEFAULT_JITO_RPC_URL,
        timeout: float = 10.0,
        encoding: str = "base58",
        client: Optional[httpx.AsyncClient] = None
    ):
        if encoding not in ENCODINGS:
            raise ValueError(f"Unsupported encoding: {encoding} (expected one of {ENCODINGS})")
        self.block_engine_url = block_engine_url
        self.encoding = encoding
        self.client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"}
        )
        self._request_id = 0

    async def _rpc(self, method: str, params: List[Any]) -> Any:
        """
        Send one JSON-RPC request and return its result.

        Raises:
            SubmissionError: On transport failure, HTTP error, or relay-reported error
            InsufficientFunds: If the relay reports the payer cannot cover fees/tip
        """
        self._request_id += 1
        request = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params
        }

        try:
            response = await self.client.post(self.block_engine_url, json=request)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise SubmissionError(
                f"{method} failed: HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise SubmissionError(f"{method} transport error: {e!r}") from e
        except ValueError as e:
            raise SubmissionError(f"{method} returned non-JSON body") from e

        if not isinstance(body, dict):
            raise SubmissionError(f"{method} returned unexpected body: {body!r}")

        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            if "insufficient" in message.lower():
                raise InsufficientFunds(f"Bundle rejected: {message}")
            raise SubmissionError(f"Bundle rejected: {message}")
        if "result" not in body:
            raise SubmissionError(f"{method} response has no result")
        return body["result"]

    async def submit(
        self,
        transactions: Sequence[Union[VersionedTransaction, AssembledTransaction]]
    ) -> str:
        """
        Submit signed transactions as one atomic bundle.

        List order is execution order inside the bundle. A returned id means
        the relay accepted the bundle into its auction, not that it landed.

        Args:
            transactions: 1..5 signed transactions

        Returns:
            Bundle id

        Raises:
            SubmissionError: Invalid bundle size, transport failure or relay error
            InsufficientFunds: Relay reports the payer cannot pay
        """
        if not 1 <= len(transactions) <= MAX_BUNDLE_SIZE:
            raise SubmissionError(
                f"Bundle must contain 1..{MAX_BUNDLE_SIZE} transactions, got {len(transactions)}"
            )

        encoded = []
        for tx in transactions:
            if isinstance(tx, AssembledTransaction):
                tx = tx.transaction
            encoded.append(encode_transaction(tx, self.encoding))

        params: List[Any] = [encoded]
        if self.encoding != "base58":
            params.append({"encoding": self.encoding})

        bundle_id = await self._rpc("sendBundle", params)
        if not isinstance(bundle_id, str) or not bundle_id:
            raise SubmissionError(f"sendBundle returned no bundle id: {bundle_id!r}")

        logger.info(f"Sent to jito, bundle id: {bundle_id}")
        return bundle_id

    async def get_bundle_statuses(self, bundle_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """
        Query landed status of submitted bundles.

        Returns:
            One entry per bundle id; None where the relay has no record yet
        """
        result = await self._rpc("getBundleStatuses", [list(bundle_ids)])
        values = result.get("value", []) if isinstance(result, dict) else (result or [])
        statuses: Dict[str, Dict[str, Any]] = {
            v["bundle_id"]: v for v in values if isinstance(v, dict) and "bundle_id" in v
        }
        return [statuses.get(bundle_id) for bundle_id in bundle_ids]

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
