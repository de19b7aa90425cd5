"""
Tests for instruction_converter.py
"""
import base64

import pytest
from solders.pubkey import Pubkey

from arbitrage_bot.errors import InstructionConversionError, MalformedAddress, PayloadDecodeError
from arbitrage_bot.instruction_converter import convert, convert_all, parse_pubkey
from arbitrage_bot.jupiter_client import SwapAccountMeta, SwapInstruction
from tests.conftest import address


class TestParsePubkey:
    """Tests for parse_pubkey."""

    def test_valid_address(self, sol_mint):
        assert parse_pubkey(sol_mint) == Pubkey.from_string(sol_mint)

    @pytest.mark.parametrize("bad", ["", "not-a-key", "0OIl", address(1) + "x"])
    def test_invalid_address(self, bad):
        with pytest.raises(MalformedAddress):
            parse_pubkey(bad)

    def test_error_names_the_field(self):
        with pytest.raises(MalformedAddress, match="program id"):
            parse_pubkey("bogus", "program id")


class TestConvert:
    """Tests for convert."""

    @pytest.mark.parametrize("count", [0, 1, 5, 24])
    def test_account_order_and_flags_preserved(self, count):
        flags = [(i % 3 == 0, i % 2 == 0) for i in range(count)]
        instr = SwapInstruction(
            program_id=address(100),
            accounts=[
                SwapAccountMeta(pubkey=address(10 + i), is_signer=s, is_writable=w)
                for i, (s, w) in enumerate(flags)
            ],
            data=base64.b64encode(b"payload").decode()
        )

        result = convert(instr)

        assert result.program_id == Pubkey.from_string(address(100))
        assert len(result.accounts) == count
        for i, meta in enumerate(result.accounts):
            assert meta.pubkey == Pubkey.from_string(address(10 + i))
            assert (meta.is_signer, meta.is_writable) == flags[i]
        assert bytes(result.data) == b"payload"

    def test_empty_data(self):
        instr = SwapInstruction(program_id=address(100), accounts=[], data="")
        assert bytes(convert(instr).data) == b""

    def test_malformed_program_id(self, make_instruction):
        instr = make_instruction()
        bad = SwapInstruction(program_id="xyz", accounts=instr.accounts, data=instr.data)
        with pytest.raises(MalformedAddress, match="program id"):
            convert(bad)

    def test_malformed_account_names_position(self, make_instruction):
        instr = make_instruction()
        accounts = list(instr.accounts) + [SwapAccountMeta(pubkey="bad", is_signer=False, is_writable=True)]
        bad = SwapInstruction(program_id=instr.program_id, accounts=accounts, data=instr.data)
        with pytest.raises(MalformedAddress, match="account #2"):
            convert(bad)

    def test_invalid_base64_payload(self, make_instruction):
        instr = make_instruction()
        bad = SwapInstruction(program_id=instr.program_id, accounts=instr.accounts, data="!!not base64!!")
        with pytest.raises(PayloadDecodeError):
            convert(bad)

    def test_errors_share_base_class(self):
        assert issubclass(MalformedAddress, InstructionConversionError)
        assert issubclass(PayloadDecodeError, InstructionConversionError)


def test_convert_all_keeps_order(make_instruction):
    instrs = [make_instruction(program=100 + i) for i in range(3)]
    result = convert_all(instrs)
    assert [ix.program_id for ix in result] == [Pubkey.from_string(address(100 + i)) for i in range(3)]


def test_convert_all_fails_whole_batch(make_instruction):
    good = make_instruction()
    bad = SwapInstruction(program_id="bad", accounts=[], data="")
    with pytest.raises(MalformedAddress):
        convert_all([good, bad, good])
