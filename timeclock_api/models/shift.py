# timeclock_api/models/shift.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import CheckConstraint, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from timeclock_api.extensions import db

STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"  # allowed by the schema, produced by nothing

_ACTIVE_ONLY = text("status = 'in_progress'")


class Shift(db.Model):
    """
    One worked shift. Opened by a clock-in (in_progress, no clock_out) or
    created already completed by a manager assignment.

    Invariants held by the table itself:
      - status in ('in_progress','completed','cancelled')
      - clock_out is null exactly when status = 'in_progress'
      - at most one in_progress row per user (partial unique index below);
        clock-in relies on this instead of a read-then-insert
    company_id is copied from the owning user at creation time.
    """

    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # tenancy & subject
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # naive UTC
    clock_in: Mapped[datetime] = mapped_column(index=True, nullable=False)
    clock_out: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    status: Mapped[str] = mapped_column(
        db.String(50), nullable=False, default=STATUS_IN_PROGRESS
    )
    notes: Mapped[Optional[str]] = mapped_column(db.Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    user = relationship("User", lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "status in ('in_progress','completed','cancelled')",
            name="ck_shifts_status",
        ),
        CheckConstraint(
            "(status = 'in_progress' and clock_out is null) or "
            "(status <> 'in_progress' and clock_out is not null)",
            name="ck_shifts_clock_out_status",
        ),
        Index(
            "uq_shifts_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
    )

    @property
    def hours(self) -> float:
        """Worked hours; 0 while the shift is still open."""
        return shift_hours(self.clock_in, self.clock_out)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "clock_in": self.clock_in.isoformat() if self.clock_in else None,
            "clock_out": self.clock_out.isoformat() if self.clock_out else None,
            "status": self.status,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict_with_user(self) -> Dict[str, Any]:
        out = self.to_dict()
        u = self.user
        out["username"] = u.username if u else None
        out["full_name"] = u.full_name if u else None
        out["role"] = u.role if u else None
        return out


def shift_hours(clock_in: Optional[datetime], clock_out: Optional[datetime]) -> float:
    if clock_in is None or clock_out is None:
        return 0.0
    return (clock_out - clock_in).total_seconds() / 3600.0
