from __future__ import annotations

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Sequence

from sqlalchemy.orm import Session

from config import config
from db.db import init_db
from db.repositories import (
    BeneficiaryRepository,
    LedgerEntryRepository,
    RegisteredAccountRepository,
    TaxYearSnapshotRepository,
)
from domain.ledger import AccountType
from importers.registered_csv import (
    ACCOUNTS_CSV,
    BENEFICIARIES_CSV,
    SNAPSHOTS_CSV,
    TRANSACTIONS_CSV,
    load_accounts,
    load_beneficiaries,
    load_snapshots,
    load_transactions,
)
from services.room_service import RegisteredRoomService
from utils.room_summary import render_noa_discrepancy, render_penalties, render_room_summary

logger = logging.getLogger(__name__)


def import_data_dir(session: Session, data_dir: Path) -> None:
    beneficiary_repository = BeneficiaryRepository(session)
    account_repository = RegisteredAccountRepository(session)
    entry_repository = LedgerEntryRepository(session)
    snapshot_repository = TaxYearSnapshotRepository(session)

    for beneficiary in load_beneficiaries(data_dir / BENEFICIARIES_CSV):
        beneficiary_repository.create(beneficiary)
    for account in load_accounts(data_dir / ACCOUNTS_CSV):
        account_repository.create(account)
    entries = entry_repository.create_many(load_transactions(data_dir / TRANSACTIONS_CSV))
    snapshots = [snapshot_repository.upsert(s) for s in load_snapshots(data_dir / SNAPSHOTS_CSV)]
    logger.info("Imported %d transactions and %d snapshots from %s", len(entries), len(snapshots), data_dir)


def run(data_dir: Path, *, as_of: date, database_url: str | None = None) -> None:
    session = init_db(database_url, reset=True)
    import_data_dir(session, data_dir)
    service = RegisteredRoomService(session)

    summaries = service.summary(as_of=as_of)
    print(f"As of {as_of.isoformat()}")
    render_room_summary(summaries)

    for summary in summaries:
        if summary.account.account_type == AccountType.RESP:
            continue
        print()
        render_penalties(summary.account.name, service.over_contribution_penalties(summary.account.id, as_of=as_of))

    snapshot_repository = TaxYearSnapshotRepository(session)
    people = sorted({summary.account.contributor for summary in summaries})
    for person in people:
        for snapshot in snapshot_repository.list_for(person, AccountType.RRSP):
            discrepancy = service.noa_discrepancy(person, snapshot.tax_year)
            if discrepancy is None:
                continue
            print()
            render_noa_discrepancy(person.value, snapshot.tax_year, discrepancy)


def main(argv: Sequence[str] | None = None) -> None:
    settings = config()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Import registered-account records and report contribution room.")
    parser.add_argument("--data-dir", type=Path, default=Path("data"))
    parser.add_argument("--as-of", type=date.fromisoformat, default=date.today())
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args(argv)
    run(args.data_dir, as_of=args.as_of, database_url=args.database_url)


if __name__ == "__main__":
    main()
