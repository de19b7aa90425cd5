"""
Round-trip quote merging and profitability check.

Two chained legs (A -> B, B -> A) are merged into one logical quote so a
single swap-instructions request covers the whole round trip.
"""
from dataclasses import dataclass, replace

from .errors import QuoteMismatch
from .jupiter_client import JupiterQuote


@dataclass(frozen=True)
class MergeResult:
    """Outcome of merging two legs."""
    merged_quote: JupiterQuote
    diff_lamports: int  # leg B out - leg A in; negative is a loss
    tip_lamports: int  # half the surplus, 0 when there is none
    is_profitable: bool


def merge(leg_a: JupiterQuote, leg_b: JupiterQuote, min_profit_lamports: int) -> MergeResult:
    """
    Merge leg A and leg B into a round-trip quote.

    The merged quote starts from leg A (input mint and amount, swap mode,
    slippage) and takes leg B's output; route plans are concatenated in
    execution order. Its otherAmountThreshold is leg A's threshold raised by
    the tip so the swap fails on-chain rather than paying a tip out of a loss.

    Args:
        leg_a: First leg quote (base -> intermediate)
        leg_b: Second leg quote (intermediate -> base)
        min_profit_lamports: Surplus must strictly exceed this to be profitable

    Returns:
        MergeResult

    Raises:
        QuoteMismatch: If leg A output mint differs from leg B input mint
    """
    if leg_a.output_mint != leg_b.input_mint:
        raise QuoteMismatch(
            f"Legs do not chain: leg A outputs {leg_a.output_mint}, "
            f"leg B takes {leg_b.input_mint}"
        )

    diff_lamports = leg_b.out_amount - leg_a.in_amount
    if diff_lamports > 0:
        tip_lamports = diff_lamports // 2
        is_profitable = diff_lamports > min_profit_lamports
    else:
        tip_lamports = 0
        is_profitable = False

    merged_quote = replace(
        leg_a,
        output_mint=leg_b.output_mint,
        out_amount=leg_b.out_amount,
        other_amount_threshold=leg_a.other_amount_threshold + tip_lamports,
        price_impact_pct=0.0,
        route_plan=list(leg_a.route_plan) + list(leg_b.route_plan),
        context_slot=None,
        time_taken=None
    )

    return MergeResult(
        merged_quote=merged_quote,
        diff_lamports=diff_lamports,
        tip_lamports=tip_lamports,
        is_profitable=is_profitable
    )
