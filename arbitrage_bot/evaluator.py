"""
Opportunity evaluation cycle.

One cycle: quote A -> quote B -> merge -> (reject | assemble -> sign -> submit).
Cycles never overlap and never retry internally; the next cycle is the retry.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .config import BotConfig
from .errors import ArbitrageError
from .quote_merger import MergeResult, merge
from .transaction_assembler import (
    AssembledTransaction,
    TransactionAssembler,
    ensure_tip_affordable,
    estimate_fee,
)
from .utils import format_lamports, get_terminal_colors

colors = get_terminal_colors()

logger = logging.getLogger(__name__)

REJECTED = "rejected"
ASSEMBLED = "assembled"  # scan mode: built and signed, not submitted
SUBMITTED = "submitted"


@dataclass
class CycleResult:
    """Terminal state of one evaluation cycle."""
    outcome: str
    merge: MergeResult
    assembled: Optional[AssembledTransaction] = None
    bundle_id: Optional[str] = None
    duration_ms: float = 0.0


class OpportunityEvaluator:
    """Drives one round-trip evaluation per cycle."""

    def __init__(
        self,
        config: BotConfig,
        jupiter_client,
        solana_client,
        assembler: TransactionAssembler,
        submitter,
        signer
    ):
        self.config = config
        self.jupiter = jupiter_client
        self.solana = solana_client
        self.assembler = assembler
        self.submitter = submitter
        self.signer = signer

    @property
    def submit_enabled(self) -> bool:
        return self.config.mode == "live"

    async def run_cycle(self) -> CycleResult:
        """
        Run a single evaluation cycle.

        Returns:
            CycleResult with outcome rejected, assembled (scan mode) or submitted

        Raises:
            ArbitrageError: Any stage failure; nothing is submitted in that case
        """
        start = time.monotonic()
        cfg = self.config

        leg_a = await self.jupiter.get_quote(
            cfg.base_mint,
            cfg.quote_mint,
            cfg.trade_amount_lamports,
            slippage_bps=cfg.slippage_bps,
            max_accounts=cfg.max_accounts
        )
        # Leg B spends exactly what leg A returns
        leg_b = await self.jupiter.get_quote(
            cfg.quote_mint,
            cfg.base_mint,
            leg_a.out_amount,
            slippage_bps=cfg.slippage_bps,
            max_accounts=cfg.max_accounts
        )

        result = merge(leg_a, leg_b, cfg.min_profit_lamports)

        if result.diff_lamports <= 0:
            logger.info(
                f"not profitable, skipping. diffLamports: "
                f"{colors['RED']}{result.diff_lamports}{colors['RESET']}"
            )
            return CycleResult(REJECTED, result, duration_ms=self._elapsed_ms(start))

        logger.info(f"diffLamports: {colors['YELLOW']}{result.diff_lamports}{colors['RESET']}")
        if not result.is_profitable:
            logger.debug(
                f"Below threshold ({result.diff_lamports} <= {cfg.min_profit_lamports}), skipping"
            )
            return CycleResult(REJECTED, result, duration_ms=self._elapsed_ms(start))

        payer = self.signer.pubkey()
        swap_instructions = await self.jupiter.get_swap_instructions(
            result.merged_quote,
            str(payer),
            compute_unit_price_micro_lamports=cfg.compute_unit_price_micro_lamports
        )

        balance = await self.solana.get_balance(payer)
        fee = estimate_fee(
            self.assembler.effective_compute_unit_limit(swap_instructions),
            self.assembler.compute_unit_price
        )
        ensure_tip_affordable(balance, result.tip_lamports, fee)

        recent_blockhash = await self.solana.get_recent_blockhash()
        assembled = await self.assembler.assemble(
            result.merged_quote,
            swap_instructions,
            result.tip_lamports,
            payer,
            self.signer,
            recent_blockhash
        )
        logger.info(
            f"transaction: {colors['CYAN']}{assembled.signature}{colors['RESET']} "
            f"tip {colors['YELLOW']}{format_lamports(result.tip_lamports)}{colors['RESET']}"
        )

        if not self.submit_enabled:
            logger.info(f"{colors['DIM']}Scan mode: bundle not submitted{colors['RESET']}")
            return CycleResult(ASSEMBLED, result, assembled, duration_ms=self._elapsed_ms(start))

        bundle_id = await self.submitter.submit([assembled.transaction])
        duration_ms = self._elapsed_ms(start)
        logger.info(f"Total duration: {duration_ms:.0f}ms")
        return CycleResult(SUBMITTED, result, assembled, bundle_id, duration_ms)

    async def run_forever(self, max_cycles: Optional[int] = None):
        """
        Run cycles back to back with a cooldown between them.

        Failures are logged and the loop continues; only cancellation stops it.
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            try:
                await self.run_cycle()
            except ArbitrageError as e:
                logger.error(f"Error running bot: {type(e).__name__}: {e}")
            except Exception as e:
                logger.error(f"Unexpected error in cycle: {e}", exc_info=True)
            await asyncio.sleep(self.config.cycle_delay_seconds)

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.monotonic() - start) * 1000
