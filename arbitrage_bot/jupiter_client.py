"""
Jupiter API client for quotes and swap instructions.
"""
import httpx
import time
import asyncio
from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field
import logging

from .constants import DEFAULT_JUPITER_API_URL
from .errors import QuoteServiceError
from .utils import short_address

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum-interval rate limiter for Jupiter API requests.

    Ensures at most `requests_per_second` requests are started per second.
    A value of 0 disables limiting.
    """

    def __init__(self, requests_per_second: float = 0.0):
        self.requests_per_second = requests_per_second
        self.min_interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Wait until a request can be made (respecting rate limit)."""
        if self.min_interval <= 0:
            return
        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time

            if time_since_last < self.min_interval:
                await asyncio.sleep(self.min_interval - time_since_last)

            self._last_request_time = time.monotonic()


@dataclass(frozen=True)
class JupiterQuote:
    """Quote response from Jupiter API (one swap leg); immutable once received."""
    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    other_amount_threshold: int
    price_impact_pct: float
    route_plan: List[Dict[str, Any]]
    swap_mode: str = "ExactIn"
    slippage_bps: int = 0
    context_slot: Optional[int] = None
    time_taken: Optional[float] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any], time_taken: Optional[float] = None) -> "JupiterQuote":
        """
        Build a quote from the /quote JSON body.

        Raises:
            QuoteServiceError: If a required field is missing or not numeric
        """
        try:
            return cls(
                input_mint=data["inputMint"],
                output_mint=data["outputMint"],
                in_amount=int(data["inAmount"]),
                out_amount=int(data["outAmount"]),
                other_amount_threshold=int(data["otherAmountThreshold"]),
                price_impact_pct=float(data.get("priceImpactPct", 0) or 0),
                route_plan=list(data.get("routePlan", [])),
                swap_mode=data.get("swapMode", "ExactIn"),
                slippage_bps=int(data.get("slippageBps", 0)),
                context_slot=data.get("contextSlot"),
                time_taken=time_taken if time_taken is not None else data.get("timeTaken")
            )
        except (KeyError, TypeError, ValueError) as e:
            raise QuoteServiceError(f"Malformed quote response: {e!r}") from e

    def to_quote_response(self) -> Dict[str, Any]:
        """Render the quote in Jupiter wire form (amounts as decimal strings)."""
        return {
            "inputMint": self.input_mint,
            "inAmount": str(self.in_amount),
            "outputMint": self.output_mint,
            "outAmount": str(self.out_amount),
            "otherAmountThreshold": str(self.other_amount_threshold),
            "swapMode": self.swap_mode,
            "slippageBps": self.slippage_bps,
            "priceImpactPct": str(self.price_impact_pct),
            "routePlan": self.route_plan
        }


@dataclass(frozen=True)
class SwapAccountMeta:
    """Account metadata for swap instruction."""
    pubkey: str
    is_signer: bool
    is_writable: bool


@dataclass(frozen=True)
class SwapInstruction:
    """Single instruction from Jupiter API: program id, ordered accounts, base64 data."""
    program_id: str
    accounts: List[SwapAccountMeta]
    data: str


@dataclass
class JupiterSwapInstructionsResponse:
    """Swap instructions response from Jupiter API."""
    compute_unit_limit: int
    setup_instructions: List[SwapInstruction]
    swap_instruction: SwapInstruction
    address_lookup_tables: List[str]  # ALT addresses, first-seen order
    cleanup_instruction: Optional[SwapInstruction] = None
    token_ledger_instruction: Optional[SwapInstruction] = None
    compute_budget_instructions: List[SwapInstruction] = field(default_factory=list)
    other_instructions: List[SwapInstruction] = field(default_factory=list)
    prioritization_fee_lamports: int = 0


class JupiterClient:
    """Client for the Jupiter swap API (quote + swap-instructions)."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        requests_per_second: float = 0.0,
        max_retries_on_429: int = 3,
        backoff_base_seconds: float = 0.5,
        backoff_max_seconds: float = 5.0
    ):
        """
        Initialize Jupiter API client.

        Args:
            api_url: API base URL, e.g. https://api.jup.ag/swap/v1
            api_key: Jupiter API key, sent as x-api-key header
            timeout: Request timeout in seconds
            requests_per_second: Client-side rate limit (0 disables)
            max_retries_on_429: Maximum retries on 429 rate limit error
            backoff_base_seconds: Base backoff time for 429 retries
            backoff_max_seconds: Maximum backoff time for 429 retries
        """
        self.api_url = (api_url or DEFAULT_JUPITER_API_URL).rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

        self.rate_limiter = RateLimiter(requests_per_second=requests_per_second)
        self.max_retries_on_429 = max_retries_on_429
        self.backoff_base_seconds = backoff_base_seconds
        self.backoff_max_seconds = backoff_max_seconds

        headers = {}
        if api_key:
            # Jupiter API expects API key in x-api-key header, not Authorization
            headers["x-api-key"] = api_key

        self.client = httpx.AsyncClient(timeout=timeout, headers=headers)

    def _backoff_seconds(self, response: httpx.Response, attempt: int) -> float:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return min(self.backoff_base_seconds * (2 ** attempt), self.backoff_max_seconds)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Perform one API request with 429 backoff.

        Raises:
            QuoteServiceError: On transport failure, non-2xx status or non-JSON body
        """
        url = f"{self.api_url}{path}"

        for attempt in range(self.max_retries_on_429 + 1):
            await self.rate_limiter.acquire()
            try:
                response = await self.client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 429 and attempt < self.max_retries_on_429:
                    wait_time = self._backoff_seconds(e.response, attempt)
                    logger.warning(
                        f"Rate limit exceeded (429) for {path}, "
                        f"retrying in {wait_time:.1f}s (attempt {attempt + 1}/{self.max_retries_on_429})"
                    )
                    await asyncio.sleep(wait_time)
                    continue
                raise QuoteServiceError(f"Jupiter {path} failed: {status} - {e.response.text}") from e
            except httpx.HTTPError as e:
                raise QuoteServiceError(f"Jupiter {path} transport error: {e!r}") from e
            except ValueError as e:
                raise QuoteServiceError(f"Jupiter {path} returned non-JSON body") from e

        # Unreachable: the last attempt either returns or raises
        raise QuoteServiceError(f"Jupiter {path} rate limited after {self.max_retries_on_429} retries")

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int = 0,
        only_direct_routes: bool = False,
        max_accounts: Optional[int] = 20
    ) -> JupiterQuote:
        """
        Get a quote for swapping tokens.

        Args:
            input_mint: Input token mint address
            output_mint: Output token mint address
            amount: Amount in smallest unit (lamports for SOL)
            slippage_bps: Slippage in basis points (1 bps = 0.01%)
            only_direct_routes: Only return direct routes
            max_accounts: Upper bound on accounts used by the route

        Returns:
            JupiterQuote

        Raises:
            QuoteServiceError: If the service is unavailable or the response is malformed
        """
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": slippage_bps,
            "onlyDirectRoutes": str(only_direct_routes).lower()
        }
        if max_accounts:
            params["maxAccounts"] = max_accounts

        start_time = time.monotonic()
        data = await self._request("GET", "/quote", params=params)
        quote = JupiterQuote.from_response(data, time_taken=time.monotonic() - start_time)

        logger.debug(
            f"Quote: {short_address(input_mint)} -> {short_address(output_mint)} "
            f"in={quote.in_amount} out={quote.out_amount} "
            f"impact={quote.price_impact_pct:.4f}% ({quote.time_taken * 1000:.0f}ms)"
        )
        return quote

    def _parse_accounts(self, accounts_data: Union[List[str], List[Dict[str, Any]]]) -> List[SwapAccountMeta]:
        """
        Parse accounts from Jupiter API response.

        Accounts must be objects: [{"pubkey": "...", "isSigner": bool, "isWritable": bool}, ...]
        Bare pubkey strings carry no signer/writable flags and are rejected.

        Raises:
            QuoteServiceError: If any account entry is not a complete object
        """
        parsed_accounts = []
        for account_data in accounts_data or []:
            if not isinstance(account_data, dict):
                raise QuoteServiceError(
                    f"Unexpected account format: {type(account_data).__name__} "
                    f"(isSigner/isWritable flags required)"
                )
            try:
                parsed_accounts.append(SwapAccountMeta(
                    pubkey=account_data["pubkey"],
                    is_signer=bool(account_data["isSigner"]),
                    is_writable=bool(account_data["isWritable"])
                ))
            except KeyError as e:
                raise QuoteServiceError(f"Account entry missing field {e}") from e

        return parsed_accounts

    def _parse_instruction(self, instr_data: Optional[Dict[str, Any]]) -> Optional[SwapInstruction]:
        if not instr_data:
            return None
        try:
            return SwapInstruction(
                program_id=instr_data["programId"],
                accounts=self._parse_accounts(instr_data.get("accounts", [])),
                data=instr_data.get("data", "")
            )
        except KeyError as e:
            raise QuoteServiceError(f"Instruction missing field {e}") from e

    def _parse_instruction_list(self, items: Optional[List[Dict[str, Any]]]) -> List[SwapInstruction]:
        return [self._parse_instruction(item) for item in items or [] if item]

    async def get_swap_instructions(
        self,
        quote: JupiterQuote,
        user_public_key: str,
        wrap_and_unwrap_sol: bool = False,
        use_shared_accounts: bool = False,
        compute_unit_price_micro_lamports: int = 1,
        dynamic_compute_unit_limit: bool = True,
        skip_user_accounts_rpc_calls: bool = True
    ) -> JupiterSwapInstructionsResponse:
        """
        Get swap instructions for a (possibly merged) quote.

        Returns structured instructions instead of a pre-built transaction,
        so the caller can add its own compute-budget and tip instructions.

        Args:
            quote: JupiterQuote, usually a merged round-trip quote
            user_public_key: Signer's public key (base58)
            wrap_and_unwrap_sol: Auto wrap/unwrap SOL
            use_shared_accounts: Use Jupiter shared program accounts
            compute_unit_price_micro_lamports: Priority price passed to Jupiter
            dynamic_compute_unit_limit: Let Jupiter simulate the compute unit limit
            skip_user_accounts_rpc_calls: Skip Jupiter-side user account checks

        Raises:
            QuoteServiceError: If the service is unavailable or the response is malformed
        """
        payload = {
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": wrap_and_unwrap_sol,
            "useSharedAccounts": use_shared_accounts,
            "computeUnitPriceMicroLamports": compute_unit_price_micro_lamports,
            "dynamicComputeUnitLimit": dynamic_compute_unit_limit,
            "skipUserAccountsRpcCalls": skip_user_accounts_rpc_calls,
            "quoteResponse": quote.to_quote_response()
        }

        data = await self._request("POST", "/swap-instructions", json=payload)

        if "error" in data:
            raise QuoteServiceError(f"Jupiter swap-instructions error: {data['error']}")
        if not data.get("swapInstruction"):
            raise QuoteServiceError("Jupiter swap-instructions response has no swapInstruction")

        # Deduplicate ALT addresses while preserving order
        raw_alts = data.get("addressLookupTableAddresses") or []
        seen = set()
        address_lookup_tables = [
            a for a in raw_alts
            if isinstance(a, str) and not (a in seen or seen.add(a))
        ]

        try:
            compute_unit_limit = int(data.get("computeUnitLimit", 0))
            prioritization_fee = int(data.get("prioritizationFeeLamports", 0) or 0)
        except (TypeError, ValueError) as e:
            raise QuoteServiceError(f"Malformed swap-instructions numeric field: {e!r}") from e

        response = JupiterSwapInstructionsResponse(
            compute_unit_limit=compute_unit_limit,
            setup_instructions=self._parse_instruction_list(data.get("setupInstructions")),
            swap_instruction=self._parse_instruction(data["swapInstruction"]),
            address_lookup_tables=address_lookup_tables,
            cleanup_instruction=self._parse_instruction(data.get("cleanupInstruction")),
            token_ledger_instruction=self._parse_instruction(data.get("tokenLedgerInstruction")),
            compute_budget_instructions=self._parse_instruction_list(data.get("computeBudgetInstructions")),
            other_instructions=self._parse_instruction_list(data.get("otherInstructions")),
            prioritization_fee_lamports=prioritization_fee
        )

        logger.debug(
            f"Swap instructions: CU limit {response.compute_unit_limit}, "
            f"{len(response.setup_instructions)} setup, 1 swap, "
            f"{len(response.address_lookup_tables)} ALTs"
        )
        return response

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
