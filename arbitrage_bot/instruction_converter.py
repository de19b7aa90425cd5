"""
Conversion of Jupiter instruction descriptors into native Solana instructions.
"""
import base64
import binascii
from typing import Iterable, List

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from .errors import MalformedAddress, PayloadDecodeError
from .jupiter_client import SwapInstruction


def parse_pubkey(address: str, what: str = "address") -> Pubkey:
    """
    Parse a base58 address into a Pubkey.

    Raises:
        MalformedAddress: If the string is not a valid 32-byte base58 key
    """
    try:
        return Pubkey.from_string(address)
    except (ValueError, TypeError) as e:
        raise MalformedAddress(f"Invalid {what}: {address!r}") from e


def convert(swap_instr: SwapInstruction) -> Instruction:
    """
    Convert a SwapInstruction from Jupiter API to a Solana Instruction.

    Account order and signer/writable flags are preserved exactly; a bad
    entry fails the whole conversion rather than being skipped.

    Args:
        swap_instr: SwapInstruction from Jupiter API

    Returns:
        Solana Instruction object

    Raises:
        MalformedAddress: Program id or any account pubkey is invalid
        PayloadDecodeError: Instruction data is not valid base64
    """
    program_id = parse_pubkey(swap_instr.program_id, "program id")

    accounts = []
    for position, account_meta in enumerate(swap_instr.accounts):
        accounts.append(AccountMeta(
            pubkey=parse_pubkey(account_meta.pubkey, f"account #{position}"),
            is_signer=account_meta.is_signer,
            is_writable=account_meta.is_writable
        ))

    try:
        data = base64.b64decode(swap_instr.data, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise PayloadDecodeError(f"Failed to decode instruction data from base64: {e}") from e

    return Instruction(
        program_id=program_id,
        data=data,
        accounts=accounts
    )


def convert_all(swap_instrs: Iterable[SwapInstruction]) -> List[Instruction]:
    """Convert instructions in order."""
    return [convert(instr) for instr in swap_instrs]
