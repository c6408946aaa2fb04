# khscrm/models.py
from __future__ import annotations
from datetime import date
from sqlalchemy import String, Text, Float, Date, Boolean, ForeignKey, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base
from .ids import utc_now_iso

ROLE_OWNER = "OWNER"
ROLE_WORKER = "WORKER"

CUSTOMER_TYPES = ("CURRENT", "LEADS")
LEAD_STATUSES = ("pending", "approved", "rejected")

# Timestamps are ISO-8601 UTC strings (see ids.utc_now_iso); they sort lexically.
_TS = String(32)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # RFC 5321 cap is 320 chars; unique + indexed for login lookups
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_WORKER)
    created_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso)


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(64))
    email: Mapped[str | None] = mapped_column(String(320), index=True)
    address: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    reference: Mapped[str | None] = mapped_column(String(255))
    customer_type: Mapped[str] = mapped_column(String(16), nullable=False, default="CURRENT")
    created_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso)

    jobs: Mapped[list["Job"]] = relationship(back_populates="customer", cascade="all, delete-orphan")


class Job(Base):
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"), index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="QUOTED")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso, index=True)
    updated_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso)

    customer: Mapped[Customer] = relationship(back_populates="jobs")
    materials: Mapped[list["Material"]] = relationship(back_populates="job", cascade="all, delete-orphan")


class Material(Base):
    __tablename__ = "materials"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    job_id: Mapped[str] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True, nullable=False)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default="each")
    purchased: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso)

    job: Mapped[Job] = relationship(back_populates="materials")


class ImportLead(Base):
    """A lead parsed from a supplier email, waiting to be approved or rejected."""

    __tablename__ = "import_leads"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320))
    phone: Mapped[str | None] = mapped_column(String(64))
    street_address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(128))
    state: Mapped[str | None] = mapped_column(String(32), default="HI")
    zip_code: Mapped[str | None] = mapped_column(String(16))
    subject_line: Mapped[str | None] = mapped_column(String(512))
    email_body: Mapped[str | None] = mapped_column(Text)
    job_type: Mapped[str | None] = mapped_column(String(16))
    attachments: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    imported_at: Mapped[str] = mapped_column(_TS, nullable=False, default=utc_now_iso)
    processed_at: Mapped[str | None] = mapped_column(_TS)
    processed_by: Mapped[str | None] = mapped_column(String(64))
    customer_id: Mapped[str | None] = mapped_column(ForeignKey("customers.id", ondelete="SET NULL"))
    job_id: Mapped[str | None] = mapped_column(ForeignKey("jobs.id", ondelete="SET NULL"))
    notes: Mapped[str | None] = mapped_column(Text)

Index("idx_import_leads_status", ImportLead.status)
