from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class BeneficiaryOrm(Base):
    __tablename__ = "beneficiaries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)

    accounts: Mapped[list["RegisteredAccountOrm"]] = relationship(back_populates="beneficiary")


class RegisteredAccountOrm(Base):
    __tablename__ = "registered_accounts"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    account_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    owner: Mapped[str] = mapped_column(String, nullable=False)
    contributor: Mapped[str] = mapped_column(String, nullable=False, index=True)
    beneficiary_id: Mapped[str | None] = mapped_column(String, ForeignKey("beneficiaries.id"), nullable=True)
    room_start_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    beneficiary: Mapped[BeneficiaryOrm | None] = relationship(back_populates="accounts")
    transactions: Mapped[list["RegisteredTransactionOrm"]] = relationship(
        cascade="all, delete-orphan", back_populates="account"
    )


class RegisteredTransactionOrm(Base):
    __tablename__ = "registered_transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    account_id: Mapped[str] = mapped_column(String, ForeignKey("registered_accounts.id"), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    occurred_on: Mapped[date] = mapped_column("date", Date, nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)

    account: Mapped[RegisteredAccountOrm] = relationship(back_populates="transactions")


class TaxYearSnapshotOrm(Base):
    __tablename__ = "tax_year_snapshots"
    __table_args__ = (UniqueConstraint("person", "account_type", "tax_year", name="uq_snapshot_person_type_year"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    person: Mapped[str] = mapped_column(String, nullable=False)
    account_type: Mapped[str] = mapped_column(String, nullable=False)
    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    earned_income: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    noa_deduction_limit: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    cra_room_as_of_jan1: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    notes: Mapped[str | None] = mapped_column(String, nullable=True)
