from decimal import Decimal

import pytest

from domain.discrepancy import check_noa_discrepancy
from domain.ledger import AccountType, Person, RegisteredAccount
from domain.penalties import monthly_penalty
from domain.rrsp import RRSPRoomResult
from domain.tfsa import TFSARoomResult
from services.room_service import AccountRoomSummary
from utils.formatting import format_currency, format_signed_currency
from utils.room_summary import render_noa_discrepancy, render_penalties, render_room_summary


def test_format_currency() -> None:
    assert format_currency(Decimal("95000")) == "95,000.00"
    assert format_currency(Decimal("12.345")) == "12.34"
    assert format_signed_currency(Decimal("-1999")) == "-1,999.00"


def test_render_room_summary(capsys: pytest.CaptureFixture[str]) -> None:
    tfsa = RegisteredAccount(name="My TFSA", account_type=AccountType.TFSA, owner=Person.SELF, contributor=Person.SELF)
    spousal = RegisteredAccount(
        name="Spousal RRSP", account_type=AccountType.RRSP, owner=Person.SPOUSE, contributor=Person.SELF
    )
    summaries = [
        AccountRoomSummary(
            account=tfsa,
            beneficiary=None,
            room=TFSARoomResult(
                total_room=Decimal("95000"),
                total_contributions=Decimal("0"),
                restored_withdrawals=Decimal("0"),
                current_year_withdrawals=Decimal("0"),
                remaining_room=Decimal("95000"),
                over_contribution_amount=Decimal("0"),
            ),
        ),
        AccountRoomSummary(
            account=spousal,
            beneficiary=None,
            room=RRSPRoomResult(
                deduction_limit=Decimal("10000"),
                unused_room=Decimal("0"),
                total_contributions=Decimal("11500"),
                remaining_room=Decimal("-1500"),
                over_contribution_amount=Decimal("0"),
                within_buffer=True,
            ),
        ),
    ]

    render_room_summary(summaries)

    out = capsys.readouterr().out
    assert "Registered account room:" in out
    assert "My TFSA" in out
    assert "95,000.00" in out
    assert "-1,500.00" in out
    assert "within $2,000 buffer" in out


def test_render_empty_outputs(capsys: pytest.CaptureFixture[str]) -> None:
    render_room_summary([])
    render_penalties("TFSA", [])

    out = capsys.readouterr().out
    assert "(no accounts)" in out
    assert "(none)" in out


def test_render_penalties_totals(capsys: pytest.CaptureFixture[str]) -> None:
    render_penalties("TFSA", [monthly_penalty(2024, 1, Decimal("1000")), monthly_penalty(2024, 2, Decimal("1500"))])

    out = capsys.readouterr().out
    assert "2024-01" in out
    assert "2024-02" in out
    assert "25.00" in out


def test_render_noa_discrepancy(capsys: pytest.CaptureFixture[str]) -> None:
    render_noa_discrepancy("self", 2023, check_noa_discrepancy(Decimal("20000"), Decimal("19000")))

    out = capsys.readouterr().out
    assert "NOA 2023 (self)" in out
    assert "MISMATCH" in out
