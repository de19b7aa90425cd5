"""
Exception taxonomy for the arbitrage pipeline.

Every stage raises one of these; a cycle either submits one atomic bundle or
nothing, so no stage returns partial results.
"""


class ArbitrageError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(ArbitrageError):
    """Invalid or missing configuration / credentials."""


class QuoteServiceError(ArbitrageError):
    """Quote or swap-instruction service unavailable or returned malformed data."""


class QuoteMismatch(ArbitrageError):
    """Leg A output asset does not match leg B input asset."""


class InstructionConversionError(ArbitrageError):
    """External instruction descriptor could not be converted."""


class MalformedAddress(InstructionConversionError):
    """An address string is not a valid base58 public key."""


class PayloadDecodeError(InstructionConversionError):
    """Instruction data is not valid base64."""


class LedgerReadError(ArbitrageError):
    """Balance, blockhash or account read against the RPC node failed."""


class LookupTableUnavailable(ArbitrageError):
    """At least one address lookup table could not be fetched or decoded."""


class UnresolvedReference(ArbitrageError):
    """Message compilation failed: an account could not be placed in the message."""


class TransactionTooLarge(ArbitrageError):
    """Signed transaction exceeds the packet size limit."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Transaction size {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class InsufficientFunds(ArbitrageError):
    """Payer cannot cover the tip plus transaction fee."""


class SigningError(ArbitrageError):
    """Signer failed to produce a signature."""


class SubmissionError(ArbitrageError):
    """Bundle relay rejected the bundle or could not be reached."""
