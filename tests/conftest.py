"""
Pytest configuration and fixtures for arbitrage bot tests.
"""
import base64

import pytest
from unittest.mock import AsyncMock
from solders.hash import Hash
from solders.keypair import Keypair

from arbitrage_bot.config import BotConfig
from arbitrage_bot.jupiter_client import (
    JupiterQuote,
    JupiterSwapInstructionsResponse,
    SwapAccountMeta,
    SwapInstruction,
)
from arbitrage_bot.signer import KeypairSigner


def address(n: int) -> str:
    """Deterministic valid base58 address."""
    return str(Keypair.from_seed(bytes([n]) * 32).pubkey())


@pytest.fixture
def sol_mint():
    """WSOL mint address."""
    return "So11111111111111111111111111111111111111112"


@pytest.fixture
def usdc_mint():
    """USDC mint address."""
    return "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


@pytest.fixture
def signer():
    """Deterministic signer (fixed seed, no real key material)."""
    return KeypairSigner.from_seed(bytes([7]) * 32)


@pytest.fixture
def blockhash():
    return Hash.new_unique()


@pytest.fixture
def make_quote(sol_mint, usdc_mint):
    """Factory for leg quotes; defaults to a WSOL -> USDC leg."""
    def _make(input_mint=sol_mint, output_mint=usdc_mint, in_amount=10_000_000,
              out_amount=12_000_000, other_amount_threshold=None, route_plan=None):
        return JupiterQuote(
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=in_amount,
            out_amount=out_amount,
            other_amount_threshold=out_amount if other_amount_threshold is None else other_amount_threshold,
            price_impact_pct=0.01,
            route_plan=route_plan if route_plan is not None else [
                {"swapInfo": {"ammKey": address(200), "inputMint": input_mint, "outputMint": output_mint}, "percent": 100}
            ],
            swap_mode="ExactIn",
            slippage_bps=0
        )
    return _make


@pytest.fixture
def make_instruction():
    """Factory for Jupiter instruction descriptors."""
    def _make(program=100, accounts=((101, False, True), (102, False, False)), data=b"\x01\x02\x03"):
        return SwapInstruction(
            program_id=address(program),
            accounts=[SwapAccountMeta(pubkey=address(n), is_signer=s, is_writable=w) for n, s, w in accounts],
            data=base64.b64encode(data).decode()
        )
    return _make


@pytest.fixture
def make_swap_response(make_instruction):
    """Factory for swap-instruction responses with N setup instructions."""
    def _make(setup_count=1, alts=None, compute_unit_limit=200_000):
        setups = [make_instruction(program=110 + i, accounts=((120 + i, False, True),), data=bytes([i]))
                  for i in range(setup_count)]
        return JupiterSwapInstructionsResponse(
            compute_unit_limit=compute_unit_limit,
            setup_instructions=setups,
            swap_instruction=make_instruction(program=100, data=b"swap"),
            address_lookup_tables=list(alts or []),
            prioritization_fee_lamports=0
        )
    return _make


@pytest.fixture
def bot_config():
    return BotConfig(trade_amount_lamports=10_000_000, min_profit_lamports=1_000, mode="live",
                     cycle_delay_seconds=0.0)


@pytest.fixture
def mock_jupiter_client():
    """Create a mock JupiterClient for testing."""
    return AsyncMock()


@pytest.fixture
def mock_solana_client():
    """Create a mock SolanaClient for testing."""
    return AsyncMock()
