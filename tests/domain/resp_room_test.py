from datetime import date
from decimal import Decimal

from domain.resp import calculate_cesg_summary, calculate_resp_room, estimate_cesg
from tests.constants import RESP_ACCOUNT, RESP_SECOND_ACCOUNT
from tests.helpers.ledger_builders import contribution, grant, pooled_ledger

BORN_2020 = date(2020, 6, 15)


def test_lifetime_limit_is_shared_across_pooled_accounts() -> None:
    at_limit = pooled_ledger(
        contribution("30000", "2021-01-10", account_id=RESP_ACCOUNT),
        contribution("20000", "2022-01-10", account_id=RESP_SECOND_ACCOUNT),
    )
    result = calculate_resp_room(BORN_2020, 2024, at_limit)
    assert result.lifetime_limit == Decimal("50000")
    assert result.remaining_room == 0
    assert result.over_contribution_amount == 0

    over_limit = pooled_ledger(
        contribution("30000", "2021-01-10", account_id=RESP_ACCOUNT),
        contribution("20500", "2022-01-10", account_id=RESP_SECOND_ACCOUNT),
    )
    result = calculate_resp_room(BORN_2020, 2024, over_limit)
    assert result.remaining_room == 0
    assert result.over_contribution_amount == Decimal("500")


def test_total_grants_are_reported() -> None:
    ledger = pooled_ledger(
        contribution("2500", "2023-03-01", account_id=RESP_ACCOUNT),
        grant("500", "2023-04-01", account_id=RESP_ACCOUNT),
        grant("300", "2024-04-01", account_id=RESP_SECOND_ACCOUNT),
    )

    result = calculate_resp_room(BORN_2020, 2024, ledger)

    assert result.total_contributions == Decimal("2500")
    assert result.remaining_room == Decimal("47500")
    assert result.total_grants == Decimal("800")
    assert result.cesg_summary.total_cesg_received == Decimal("800")


def test_basic_grant_with_every_year_used() -> None:
    entries = [grant("500", f"{year}-07-01", account_id=RESP_ACCOUNT) for year in range(2020, 2025)]
    entries.append(contribution("2500", "2024-03-01", account_id=RESP_ACCOUNT))

    summary = calculate_cesg_summary(BORN_2020, 2024, pooled_ledger(*entries))

    assert summary.eligible_for_cesg
    assert summary.current_year_cesg == Decimal("500")
    assert summary.current_year_max == Decimal("500")
    assert summary.carry_forward_room == 0
    assert summary.remaining_lifetime_cesg == Decimal("4700")
    assert estimate_cesg(Decimal("1000"), summary) == 0


def test_unused_prior_years_allow_catch_up() -> None:
    ledger = pooled_ledger(
        contribution("2500", "2024-03-01", account_id=RESP_ACCOUNT),
        grant("500", "2024-04-01", account_id=RESP_ACCOUNT),
    )

    summary = calculate_cesg_summary(BORN_2020, 2024, ledger)

    # Five years of room (2020-2024) less the 500 received.
    assert summary.current_year_max == Decimal("1000")
    assert summary.carry_forward_room == Decimal("1500")
    assert estimate_cesg(Decimal("2500"), summary) == Decimal("500")


def test_missed_first_year_carries_forward() -> None:
    born = date(2023, 3, 1)

    summary = calculate_cesg_summary(born, 2024, pooled_ledger())

    assert summary.current_year_max == Decimal("1000")
    assert summary.carry_forward_room == Decimal("500")
    assert estimate_cesg(Decimal("5000"), summary) == Decimal("1000")
    assert estimate_cesg(Decimal("2500"), summary) == Decimal("500")
    assert estimate_cesg(Decimal("8000"), summary) == Decimal("1000")


def test_estimate_accounts_for_grant_already_received_this_year() -> None:
    entries = [grant("500", f"{year}-07-01", account_id=RESP_ACCOUNT) for year in range(2020, 2024)]
    entries.append(grant("200", "2024-02-01", account_id=RESP_ACCOUNT))

    summary = calculate_cesg_summary(BORN_2020, 2024, pooled_ledger(*entries))

    assert summary.current_year_max == Decimal("500")
    assert summary.current_year_cesg == Decimal("200")
    # 1000 of the 2500 base is already matched.
    assert estimate_cesg(Decimal("2500"), summary) == Decimal("300")
    assert estimate_cesg(Decimal("500"), summary) == Decimal("100")


def test_beneficiary_over_17_is_not_eligible() -> None:
    summary = calculate_cesg_summary(date(2000, 1, 1), 2024, pooled_ledger())

    assert not summary.eligible_for_cesg
    assert summary.current_year_max == 0
    assert estimate_cesg(Decimal("2500"), summary) == 0


def test_eligible_through_year_of_17th_birthday() -> None:
    summary = calculate_cesg_summary(date(2007, 12, 31), 2024, pooled_ledger())

    assert summary.eligible_for_cesg
    # 18 years of unused room, clamped to the lifetime maximum.
    assert summary.current_year_max == Decimal("1000")
    assert summary.carry_forward_room == Decimal("6700")


def test_lifetime_maximum_stops_grants() -> None:
    ledger = pooled_ledger(grant("7200", "2015-05-01", account_id=RESP_ACCOUNT))

    summary = calculate_cesg_summary(date(2010, 1, 1), 2024, ledger)

    assert summary.remaining_lifetime_cesg == 0
    assert summary.current_year_max == 0
    assert summary.carry_forward_room == 0
    assert estimate_cesg(Decimal("2500"), summary) == 0
