from decimal import Decimal

from domain.constants import TFSA_ANNUAL_LIMITS
from domain.ledger import AccountType, Person, TaxYearSnapshot
from domain.tfsa import calculate_tfsa_room, cumulative_tfsa_limits, latest_cra_sync_point
from tests.helpers.ledger_builders import account_ledger, contribution, withdrawal


def _cra_snapshot(tax_year: int, room: str) -> TaxYearSnapshot:
    return TaxYearSnapshot(
        person=Person.SELF,
        account_type=AccountType.TFSA,
        tax_year=tax_year,
        cra_room_as_of_jan1=Decimal(room),
    )


def test_room_from_scratch_without_transactions_is_sum_of_limits() -> None:
    result = calculate_tfsa_room(2009, 2024, account_ledger(), [])

    expected = sum(TFSA_ANNUAL_LIMITS[year] for year in range(2009, 2025))
    assert expected == Decimal("95000")
    assert result.total_room == expected
    assert result.remaining_room == expected
    assert result.over_contribution_amount == 0
    assert result.total_contributions == 0


def test_withdrawal_restores_room_only_the_following_year() -> None:
    ledger = account_ledger(
        contribution("5000", "2023-03-01"),
        withdrawal("1000", "2023-06-01"),
    )

    same_year = calculate_tfsa_room(2020, 2023, ledger, [])
    assert same_year.total_room == Decimal("24500")
    assert same_year.remaining_room == Decimal("19500")
    assert same_year.restored_withdrawals == 0
    assert same_year.current_year_withdrawals == Decimal("1000")

    next_year = calculate_tfsa_room(2020, 2024, ledger, [])
    assert next_year.total_room == Decimal("31500")
    assert next_year.remaining_room == Decimal("27500")
    assert next_year.restored_withdrawals == Decimal("1000")
    assert next_year.current_year_withdrawals == 0


def test_over_contribution_has_no_buffer() -> None:
    ledger = account_ledger(contribution("8000", "2024-01-15"))

    result = calculate_tfsa_room(2024, 2024, ledger, [])

    assert result.remaining_room == Decimal("-1000")
    assert result.over_contribution_amount == Decimal("1000")


def test_cra_sync_point_in_current_year_is_returned_unchanged() -> None:
    result = calculate_tfsa_room(2009, 2024, account_ledger(), [_cra_snapshot(2024, "88000")])

    assert result.remaining_room == Decimal("88000")
    assert result.total_room == Decimal("88000")
    assert result.over_contribution_amount == 0


def test_cra_sync_adds_later_limits_and_only_counts_activity_since_sync() -> None:
    ledger = account_ledger(
        contribution("3000", "2022-05-01"),
        contribution("5000", "2023-02-01"),
        withdrawal("2000", "2023-08-01"),
    )

    result = calculate_tfsa_room(2009, 2024, ledger, [_cra_snapshot(2023, "20000")])

    # 20000 + 7000 (2024) - 5000 + 2000
    assert result.remaining_room == Decimal("24000")
    # Display totals are lifetime figures.
    assert result.total_contributions == Decimal("8000")
    assert result.restored_withdrawals == Decimal("2000")
    assert result.total_room == Decimal("30000")
    assert result.current_year_withdrawals == 0


def test_latest_cra_sync_point_wins() -> None:
    snapshots = [_cra_snapshot(2024, "50000"), _cra_snapshot(2022, "10000")]

    assert latest_cra_sync_point(snapshots) == snapshots[0]
    result = calculate_tfsa_room(2009, 2024, account_ledger(), snapshots)
    assert result.remaining_room == Decimal("50000")


def test_snapshots_without_cra_room_fall_back_to_scratch() -> None:
    snapshots = [
        TaxYearSnapshot(person=Person.SELF, account_type=AccountType.TFSA, tax_year=2023),
        TaxYearSnapshot(
            person=Person.SELF,
            account_type=AccountType.RRSP,
            tax_year=2023,
            cra_room_as_of_jan1=Decimal("1"),
        ),
    ]

    result = calculate_tfsa_room(2023, 2024, account_ledger(), snapshots)

    assert result.remaining_room == Decimal("13500")


def test_unmapped_years_add_no_room() -> None:
    assert cumulative_tfsa_limits(2030, 2032) == 0
    assert cumulative_tfsa_limits(2026, 2027) == Decimal("7000")

    result = calculate_tfsa_room(2030, 2031, account_ledger(), [])
    assert result.total_room == 0
    assert result.remaining_room == 0
