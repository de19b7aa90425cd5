"""
Atomic transaction assembly for a merged round-trip swap.

Instruction layout is fixed:
    compute budget -> setup (as received) -> swap -> tip transfer
The tip is last so it only lands if every swap instruction before it succeeds.
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction

from .constants import BASE_FEE_LAMPORTS, JITO_TIP_ACCOUNT, MAX_TRANSACTION_SIZE
from .errors import InsufficientFunds, SigningError, TransactionTooLarge, UnresolvedReference
from .instruction_converter import convert, convert_all, parse_pubkey
from .jupiter_client import JupiterQuote, JupiterSwapInstructionsResponse
from .lookup_tables import LookupTableResolver
from .utils import get_terminal_colors, short_address

colors = get_terminal_colors()

logger = logging.getLogger(__name__)

# Runtime ceiling, used when the swap service reports no limit
MAX_COMPUTE_UNIT_LIMIT = 1_400_000


def estimate_fee(compute_unit_limit: int, compute_unit_price_micro_lamports: int, signatures: int = 1) -> int:
    """Base fee per signature plus the priority fee (limit * price, micro-lamports rounded up)."""
    priority = -(-compute_unit_limit * compute_unit_price_micro_lamports // 1_000_000)
    return BASE_FEE_LAMPORTS * signatures + priority


def ensure_tip_affordable(balance_lamports: int, tip_lamports: int, fee_lamports: int = BASE_FEE_LAMPORTS) -> int:
    """
    Check that the payer can cover the tip after paying the transaction fee.

    The subtraction is done on plain ints, so a balance below the fee gives a
    negative spendable amount instead of wrapping around.

    Returns:
        Spendable lamports left after the fee

    Raises:
        InsufficientFunds: If balance - fee is negative or below the tip
    """
    spendable = balance_lamports - fee_lamports
    if spendable < 0:
        raise InsufficientFunds(
            f"Balance {balance_lamports} lamports does not cover the {fee_lamports} lamport fee"
        )
    if spendable < tip_lamports:
        raise InsufficientFunds(
            f"Balance {balance_lamports} lamports cannot cover tip {tip_lamports} + fee {fee_lamports}"
        )
    return spendable


@dataclass
class AssembledTransaction:
    """
    Signed transaction ready for bundle submission.

    Valid only while recent_blockhash is; submitted at most once.
    """
    transaction: VersionedTransaction
    recent_blockhash: Hash
    lookup_tables: List[AddressLookupTableAccount]
    instruction_count: int
    tip_lamports: int
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.transaction, VersionedTransaction):
            raise ValueError(f"transaction must be VersionedTransaction, got {type(self.transaction)}")
        if not self.transaction.signatures:
            raise ValueError("transaction must be signed (have signatures)")

    @property
    def signature(self) -> str:
        return str(self.transaction.signatures[0])

    @property
    def raw_size(self) -> int:
        return len(bytes(self.transaction))


class TransactionAssembler:
    """Builds, compiles and signs the atomic round-trip transaction."""

    def __init__(
        self,
        resolver: LookupTableResolver,
        tip_account: str = JITO_TIP_ACCOUNT,
        compute_unit_price_micro_lamports: int = 0,
        max_transaction_size: int = MAX_TRANSACTION_SIZE
    ):
        self.resolver = resolver
        self.tip_account = parse_pubkey(tip_account, "tip account")
        self.compute_unit_price = compute_unit_price_micro_lamports
        self.max_transaction_size = max_transaction_size

    def effective_compute_unit_limit(self, swap_instructions: JupiterSwapInstructionsResponse) -> int:
        """Compute-unit limit the transaction requests; the runtime max when the service reports none."""
        return swap_instructions.compute_unit_limit or MAX_COMPUTE_UNIT_LIMIT

    def build_instructions(
        self,
        swap_instructions: JupiterSwapInstructionsResponse,
        tip_lamports: int,
        fee_payer: Pubkey
    ) -> List[Instruction]:
        """
        Build the ordered instruction list.

        Cleanup, token-ledger and other optional instructions from the swap
        service are not included.

        Raises:
            MalformedAddress / PayloadDecodeError: From instruction conversion
        """
        instructions: List[Instruction] = [
            set_compute_unit_limit(self.effective_compute_unit_limit(swap_instructions))
        ]
        if self.compute_unit_price > 0:
            instructions.append(set_compute_unit_price(self.compute_unit_price))

        instructions.extend(convert_all(swap_instructions.setup_instructions))
        instructions.append(convert(swap_instructions.swap_instruction))
        instructions.append(transfer(TransferParams(
            from_pubkey=fee_payer,
            to_pubkey=self.tip_account,
            lamports=tip_lamports
        )))
        return instructions

    def compile_message(
        self,
        fee_payer: Pubkey,
        instructions: List[Instruction],
        lookup_tables: List[AddressLookupTableAccount],
        recent_blockhash: Hash
    ) -> MessageV0:
        """
        Compile a v0 message against the given lookup tables.

        Raises:
            UnresolvedReference: If compilation cannot place every account
        """
        try:
            return MessageV0.try_compile(
                payer=fee_payer,
                instructions=instructions,
                address_lookup_table_accounts=lookup_tables,
                recent_blockhash=recent_blockhash
            )
        except Exception as e:
            raise UnresolvedReference(
                f"Failed to compile v0 message ({len(instructions)} instructions, "
                f"{len(lookup_tables)} ALTs): {e}"
            ) from e

    def sign(self, message: MessageV0, signer) -> VersionedTransaction:
        """
        Sign a compiled message with the single payer signature.

        Raises:
            SigningError: If the message needs other signers or the signer fails
        """
        required = message.header.num_required_signatures
        if required != 1 or message.account_keys[0] != signer.pubkey():
            raise SigningError(
                f"Message requires {required} signature(s) with payer {message.account_keys[0]}, "
                f"signer is {signer.pubkey()}"
            )
        try:
            signature = signer.sign_message(to_bytes_versioned(message))
            return VersionedTransaction.populate(message, [signature])
        except Exception as e:
            raise SigningError(f"Signing failed: {e}") from e

    async def assemble(
        self,
        merged_quote: JupiterQuote,
        swap_instructions: JupiterSwapInstructionsResponse,
        tip_lamports: int,
        fee_payer: Pubkey,
        signer,
        recent_blockhash: Hash
    ) -> AssembledTransaction:
        """
        Assemble and sign the atomic round-trip transaction.

        Args:
            merged_quote: Merged round-trip quote the instructions were built for
            swap_instructions: Swap-instruction service response
            tip_lamports: Tip paid to the tip account in the last instruction
            fee_payer: Fee payer (must be the signer's pubkey)
            signer: Object with pubkey() and sign_message(bytes)
            recent_blockhash: Block reference the message is compiled against

        Returns:
            AssembledTransaction

        Raises:
            MalformedAddress, PayloadDecodeError, LookupTableUnavailable,
            UnresolvedReference, SigningError, TransactionTooLarge
        """
        instructions = self.build_instructions(swap_instructions, tip_lamports, fee_payer)
        lookup_tables = await self.resolver.resolve(swap_instructions.address_lookup_tables)
        message = self.compile_message(fee_payer, instructions, lookup_tables, recent_blockhash)
        transaction = self.sign(message, signer)

        raw_len = len(bytes(transaction))
        if raw_len > self.max_transaction_size:
            logger.warning(
                f"Atomic VT too large: raw={colors['YELLOW']}{raw_len}{colors['RESET']} bytes "
                f"(max {self.max_transaction_size}), instr={len(instructions)}, ALTs={len(lookup_tables)}"
            )
            raise TransactionTooLarge(raw_len, self.max_transaction_size)

        logger.info(
            f"{colors['GREEN']}Atomic VersionedTransaction built (v0):{colors['RESET']} "
            f"{colors['GREEN']}{len(instructions)}{colors['RESET']} instructions, "
            f"{colors['GREEN']}{len(lookup_tables)}{colors['RESET']} ALTs, "
            f"size={colors['GREEN']}{raw_len}{colors['RESET']}/{self.max_transaction_size} bytes, "
            f"route {short_address(merged_quote.input_mint)} -> {short_address(merged_quote.output_mint)}"
        )

        return AssembledTransaction(
            transaction=transaction,
            recent_blockhash=recent_blockhash,
            lookup_tables=lookup_tables,
            instruction_count=len(instructions),
            tip_lamports=tip_lamports,
            meta={
                "raw_size_bytes": raw_len,
                "b64_size_bytes": len(base64.b64encode(bytes(transaction))),
                "address_table_lookups": len(message.address_table_lookups),
                "route_steps": len(merged_quote.route_plan)
            }
        )
