from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from config import AppSettings, config
from db.repositories import (
    BeneficiaryRepository,
    LedgerEntryRepository,
    RegisteredAccountRepository,
    TaxYearSnapshotRepository,
)
from domain.discrepancy import NOADiscrepancy, check_noa_discrepancy
from domain.ledger import AccountId, AccountType, Beneficiary, Person, PooledLedger, RegisteredAccount
from domain.penalties import MonthlyPenalty, calculate_rrsp_penalties, calculate_tfsa_penalties
from domain.resp import RESPRoomResult, calculate_resp_room
from domain.rrsp import RRSPRoomResult, calculate_rrsp_room
from domain.spousal import SpousalAttributionResult, calculate_spousal_attribution
from domain.tfsa import TFSARoomResult, calculate_tfsa_room

logger = logging.getLogger(__name__)

RoomResult = TFSARoomResult | RRSPRoomResult | RESPRoomResult


class AccountNotFoundError(Exception):
    def __init__(self, account_id: str) -> None:
        super().__init__(f"Registered account {account_id} not found")
        self.account_id = account_id


class NotSpousalAccountError(Exception):
    def __init__(self, account: RegisteredAccount) -> None:
        super().__init__(
            f"Account {account.id} ({account.account_type} owner={account.owner} "
            f"contributor={account.contributor}) is not a spousal RRSP"
        )
        self.account = account


@dataclass
class AccountRoomSummary:
    account: RegisteredAccount
    beneficiary: Beneficiary | None
    room: RoomResult


class RegisteredRoomService:
    """Loads stored records, pools them the way each account type requires and runs the room engines."""

    def __init__(self, session: Session, *, settings: AppSettings | None = None) -> None:
        self._accounts = RegisteredAccountRepository(session)
        self._beneficiaries = BeneficiaryRepository(session)
        self._entries = LedgerEntryRepository(session)
        self._snapshots = TaxYearSnapshotRepository(session)
        self._settings = settings or config()

    def account_room(self, account_id: AccountId, *, as_of: date | None = None) -> RoomResult:
        account = self._get_account(account_id)
        return self._room_for(account, _as_of(as_of).year)

    def summary(self, *, as_of: date | None = None) -> list[AccountRoomSummary]:
        current_year = _as_of(as_of).year
        return [
            AccountRoomSummary(
                account=account,
                beneficiary=self._beneficiary_of(account),
                room=self._room_for(account, current_year),
            )
            for account in self._accounts.list()
        ]

    def over_contribution_penalties(self, account_id: AccountId, *, as_of: date | None = None) -> list[MonthlyPenalty]:
        account = self._get_account(account_id)
        today = _as_of(as_of)

        if account.account_type == AccountType.TFSA:
            return calculate_tfsa_penalties(
                self._tfsa_start_year(account),
                today.year,
                self._entries.ledger_for_account(account.id),
                current_month=today.month,
            )
        if account.account_type == AccountType.RRSP:
            return calculate_rrsp_penalties(
                today.year,
                self._rrsp_pool(account.contributor),
                self._snapshots.list_for(account.contributor, AccountType.RRSP),
                current_month=today.month,
            )
        return []

    def noa_discrepancy(self, person: Person, tax_year: int) -> NOADiscrepancy | None:
        """Compare a reported NOA against the limit rebuilt from earlier snapshots."""
        snapshot = self._snapshots.get(person, AccountType.RRSP, tax_year)
        if snapshot is None or snapshot.noa_deduction_limit is None:
            return None

        prior_snapshots = [s for s in self._snapshots.list_for(person, AccountType.RRSP) if s.tax_year < tax_year]
        calculated = calculate_rrsp_room(tax_year + 1, self._rrsp_pool(person), prior_snapshots)
        result = check_noa_discrepancy(snapshot.noa_deduction_limit, calculated.deduction_limit)
        if result.has_discrepancy:
            logger.info(
                "NOA discrepancy for person=%s tax_year=%d: reported=%s calculated=%s",
                person,
                tax_year,
                result.noa_room,
                result.calculated_room,
            )
        return result

    def spousal_attribution(
        self,
        account_id: AccountId,
        withdrawal_date: date,
        withdrawal_amount: Decimal,
    ) -> SpousalAttributionResult:
        account = self._get_account(account_id)
        if not account.is_spousal:
            raise NotSpousalAccountError(account)
        return calculate_spousal_attribution(
            withdrawal_date,
            withdrawal_amount,
            self._entries.ledger_for_account(account.id),
        )

    def _room_for(self, account: RegisteredAccount, current_year: int) -> RoomResult:
        if account.account_type == AccountType.TFSA:
            return calculate_tfsa_room(
                self._tfsa_start_year(account),
                current_year,
                self._entries.ledger_for_account(account.id),
                self._snapshots.list_for(account.contributor, AccountType.TFSA),
            )
        if account.account_type == AccountType.RRSP:
            return calculate_rrsp_room(
                current_year,
                self._rrsp_pool(account.contributor),
                self._snapshots.list_for(account.contributor, AccountType.RRSP),
            )

        beneficiary = self._beneficiary_of(account)
        if beneficiary is None:
            logger.warning(
                "RESP account %s has no beneficiary; using fallback birth date %s",
                account.id,
                self._settings.resp_fallback_birth_date,
            )
            ledger = PooledLedger.pool(f"account:{account.id}", [self._entries.ledger_for_account(account.id)])
            return calculate_resp_room(self._settings.resp_fallback_birth_date, current_year, ledger)

        return calculate_resp_room(beneficiary.date_of_birth, current_year, self._resp_pool(beneficiary))

    def _rrsp_pool(self, contributor: Person) -> PooledLedger:
        accounts = self._accounts.list_by_contributor(contributor, AccountType.RRSP)
        return self._entries.pooled_ledger(f"rrsp:{contributor}", [account.id for account in accounts])

    def _resp_pool(self, beneficiary: Beneficiary) -> PooledLedger:
        accounts = self._accounts.list_by_beneficiary(beneficiary.id)
        resp_ids = [account.id for account in accounts if account.account_type == AccountType.RESP]
        return self._entries.pooled_ledger(f"resp:{beneficiary.id}", resp_ids)

    def _beneficiary_of(self, account: RegisteredAccount) -> Beneficiary | None:
        if account.beneficiary_id is None:
            return None
        return self._beneficiaries.get(account.beneficiary_id)

    def _tfsa_start_year(self, account: RegisteredAccount) -> int:
        if account.room_start_year is not None:
            return account.room_start_year
        return self._settings.default_tfsa_start_year

    def _get_account(self, account_id: AccountId) -> RegisteredAccount:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account


def _as_of(as_of: date | None) -> date:
    return as_of or date.today()
