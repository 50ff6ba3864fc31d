from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from domain.discrepancy import NOADiscrepancy
from domain.penalties import MonthlyPenalty
from domain.resp import RESPRoomResult
from domain.rrsp import RRSPRoomResult
from services.room_service import AccountRoomSummary

from utils.formatting import format_currency, format_signed_currency


def _room_note(summary: AccountRoomSummary) -> str:
    room = summary.room
    if isinstance(room, RRSPRoomResult) and room.within_buffer:
        return "over limit, within $2,000 buffer"
    if isinstance(room, RESPRoomResult):
        cesg = room.cesg_summary
        if not cesg.eligible_for_cesg:
            return "CESG: not eligible"
        return f"CESG {format_currency(cesg.current_year_cesg)}/{format_currency(cesg.current_year_max)} this year"
    if summary.account.is_spousal:
        return f"spousal (contributor: {summary.account.contributor})"
    return ""


def render_room_summary(summaries: Iterable[AccountRoomSummary]) -> None:
    rows_in = list(summaries)
    print("Registered account room:")
    if not rows_in:
        print("  (no accounts)")
        return

    rows: list[tuple[str, str, str, str, str, str]] = []
    for summary in rows_in:
        account = summary.account
        holder = summary.beneficiary.name if summary.beneficiary is not None else str(account.owner)
        rows.append(
            (
                account.name,
                account.account_type.value,
                holder,
                format_signed_currency(summary.room.remaining_room),
                format_currency(summary.room.over_contribution_amount),
                _room_note(summary),
            )
        )

    labels = ("Account", "Type", "Holder", "Remaining", "Over", "Notes")
    widths = [max(len(label), max(len(row[idx]) for row in rows)) for idx, label in enumerate(labels)]

    header = (
        f"{labels[0]:<{widths[0]}} {labels[1]:<{widths[1]}} {labels[2]:<{widths[2]}} "
        f"{labels[3]:>{widths[3]}} {labels[4]:>{widths[4]}} {labels[5]}"
    )
    lines = [header, "-" * len(header)]
    for name, account_type, holder, remaining, over, note in rows:
        lines.append(
            f"{name:<{widths[0]}} {account_type:<{widths[1]}} {holder:<{widths[2]}} "
            f"{remaining:>{widths[3]}} {over:>{widths[4]}} {note}".rstrip()
        )

    print("\n".join(lines))


def render_penalties(account_name: str, penalties: Iterable[MonthlyPenalty]) -> None:
    penalty_rows = list(penalties)
    print(f"Over-contribution penalties for {account_name}:")
    if not penalty_rows:
        print("  (none)")
        return

    rows = [
        (f"{p.year}-{p.month:02d}", format_currency(p.excess_amount), format_currency(p.penalty)) for p in penalty_rows
    ]
    month_width = max(len("Month"), max(len(month) for month, _, _ in rows))
    excess_width = max(len("Excess"), max(len(excess) for _, excess, _ in rows))
    penalty_width = max(len("Penalty"), max(len(penalty) for _, _, penalty in rows))

    header = f"{'Month':<{month_width}} {'Excess':>{excess_width}} {'Penalty':>{penalty_width}}"
    lines = [header, "-" * len(header)]
    for month, excess, penalty in rows:
        lines.append(f"{month:<{month_width}} {excess:>{excess_width}} {penalty:>{penalty_width}}")

    total = sum((p.penalty for p in penalty_rows), start=Decimal(0))
    lines.append("-" * len(header))
    lines.append(f"{'Total':<{month_width}} {'':>{excess_width}} {format_currency(total):>{penalty_width}}")
    print("\n".join(lines))


def render_noa_discrepancy(person: str, tax_year: int, discrepancy: NOADiscrepancy) -> None:
    status = "MISMATCH" if discrepancy.has_discrepancy else "ok"
    print(
        f"NOA {tax_year} ({person}): reported {format_currency(discrepancy.noa_room)}, "
        f"calculated {format_currency(discrepancy.calculated_room)}, "
        f"difference {format_currency(discrepancy.difference)} [{status}]"
    )
