"""
Tests for quote_merger.py
"""
import pytest

from arbitrage_bot.errors import QuoteMismatch
from arbitrage_bot.quote_merger import merge


@pytest.fixture
def legs(make_quote, sol_mint, usdc_mint):
    """Leg A/B factory with chained mints."""
    def _legs(in_a, out_a, out_b):
        leg_a = make_quote(sol_mint, usdc_mint, in_amount=in_a, out_amount=out_a,
                           route_plan=[{"step": "a"}])
        leg_b = make_quote(usdc_mint, sol_mint, in_amount=out_a, out_amount=out_b,
                           route_plan=[{"step": "b1"}, {"step": "b2"}])
        return leg_a, leg_b
    return _legs


def test_mismatched_legs_rejected(make_quote, sol_mint, usdc_mint):
    leg_a = make_quote(sol_mint, usdc_mint)
    leg_b = make_quote(sol_mint, usdc_mint)
    with pytest.raises(QuoteMismatch):
        merge(leg_a, leg_b, 1_000)


def test_round_trip_profit(legs, sol_mint):
    leg_a, leg_b = legs(10_000_000, 12_000_000, 10_010_000)

    result = merge(leg_a, leg_b, 1_000)

    assert result.diff_lamports == 10_000
    assert result.tip_lamports == 5_000
    assert result.is_profitable is True
    merged = result.merged_quote
    assert merged.input_mint == sol_mint
    assert merged.output_mint == sol_mint
    assert merged.in_amount == 10_000_000
    assert merged.out_amount == 10_010_000
    assert merged.other_amount_threshold == 12_000_000 + 5_000


def test_half_of_surplus_is_tipped(legs):
    leg_a, leg_b = legs(10_000_000, 500, 10_005_000)
    result = merge(leg_a, leg_b, 1_000)
    assert result.tip_lamports == 2_500


def test_odd_surplus_rounds_tip_down(legs):
    leg_a, leg_b = legs(1_000_000, 500, 1_001_001)
    result = merge(leg_a, leg_b, 1_000)
    assert result.diff_lamports == 1_001
    assert result.tip_lamports == 500
    assert result.is_profitable is True


def test_break_even_not_profitable(legs):
    leg_a, leg_b = legs(10_000_000, 500, 10_000_000)
    result = merge(leg_a, leg_b, 0)
    assert result.diff_lamports == 0
    assert result.tip_lamports == 0
    assert result.is_profitable is False


def test_loss_has_no_tip(legs):
    leg_a, leg_b = legs(1_000_000, 500, 990_000)
    result = merge(leg_a, leg_b, 1_000)
    assert result.diff_lamports == -10_000
    assert result.tip_lamports == 0
    assert result.is_profitable is False
    assert result.merged_quote.other_amount_threshold == 500


def test_threshold_is_strict(legs):
    leg_a, leg_b = legs(1_000_000, 500, 1_001_000)
    assert merge(leg_a, leg_b, 1_000).is_profitable is False
    assert merge(leg_a, leg_b, 999).is_profitable is True


def test_route_plans_concatenated_in_order(legs):
    leg_a, leg_b = legs(1_000_000, 500, 1_001_000)
    merged = merge(leg_a, leg_b, 0).merged_quote
    assert merged.route_plan == [{"step": "a"}, {"step": "b1"}, {"step": "b2"}]


def test_legs_are_not_mutated(legs):
    leg_a, leg_b = legs(1_000_000, 500, 1_010_000)
    merge(leg_a, leg_b, 0)
    assert leg_a.output_mint != leg_b.output_mint
    assert leg_a.other_amount_threshold == 500
    assert leg_a.route_plan == [{"step": "a"}]
