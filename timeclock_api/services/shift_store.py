# timeclock_api/services/shift_store.py
from __future__ import annotations

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from timeclock_api.common.dates import DateRange
from timeclock_api.models.shift import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    Shift,
)
from timeclock_api.models.user import User

log = logging.getLogger(__name__)


class ShiftStore:
    """
    Persistence over shifts and the users they belong to. Every company-level
    read and write filters on company_id. Each write commits on its own.

    `db` is the Flask-SQLAlchemy handle; sessions are request-scoped by it.
    """

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    # ---------- clock-in / clock-out ----------

    def insert_active(self, user_id: int, company_id: int, at: datetime) -> Optional[Shift]:
        """
        Conditional insert of an in_progress shift. The partial unique index
        uq_shifts_one_active_per_user makes this atomic: a concurrent or
        repeated insert for the same user fails at commit. Returns None in
        that case.
        """
        shift = Shift(
            user_id=user_id,
            company_id=company_id,
            clock_in=at,
            status=STATUS_IN_PROGRESS,
            created_at=at,
            updated_at=at,
        )
        self.session.add(shift)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if self.active_for(user_id) is not None:
                return None
            # some other constraint (e.g. unknown user) -> store failure
            raise
        return shift

    def close_active(self, user_id: int, notes: str, at: datetime) -> Optional[Shift]:
        """
        Single UPDATE ... WHERE user_id = ? AND status = 'in_progress'
        RETURNING id. Of two concurrent calls only one matches the row.
        """
        stmt = (
            update(Shift)
            .where(Shift.user_id == user_id, Shift.status == STATUS_IN_PROGRESS)
            .values(clock_out=at, status=STATUS_COMPLETED, notes=notes, updated_at=at)
            .returning(Shift.id)
        )
        shift_id = self.session.execute(stmt).scalars().first()
        self.session.commit()
        if shift_id is None:
            return None
        return self.session.get(Shift, shift_id, populate_existing=True)

    # ---------- self-service reads ----------

    def active_for(self, user_id: int) -> Optional[Shift]:
        stmt = select(Shift).where(
            Shift.user_id == user_id, Shift.status == STATUS_IN_PROGRESS
        )
        return self.session.execute(stmt).scalars().first()

    def list_for_user(self, user_id: int, limit: int, offset: int) -> List[Shift]:
        stmt = (
            select(Shift)
            .where(Shift.user_id == user_id)
            .order_by(Shift.clock_in.desc(), Shift.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.execute(stmt).scalars().unique())

    # ---------- company-scoped reads ----------

    def list_for_company(self, company_id: int, rng: DateRange,
                         limit: int, offset: int) -> List[Shift]:
        stmt = (
            select(Shift)
            .where(Shift.company_id == company_id, rng.clause(Shift.clock_in))
            .order_by(Shift.clock_in.desc(), Shift.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.execute(stmt).scalars().unique())

    def list_between(self, company_id: int, start: datetime, end: datetime) -> List[Shift]:
        """[start, end) ascending by clock_in."""
        stmt = (
            select(Shift)
            .where(
                Shift.company_id == company_id,
                Shift.clock_in >= start,
                Shift.clock_in < end,
            )
            .order_by(Shift.clock_in.asc(), Shift.id.asc())
        )
        return list(self.session.execute(stmt).scalars().unique())

    def report_rows(self, company_id: int, rng: DateRange):
        """(status, clock_in, clock_out) for every shift in the range."""
        stmt = select(Shift.status, Shift.clock_in, Shift.clock_out).where(
            Shift.company_id == company_id, rng.clause(Shift.clock_in)
        )
        return self.session.execute(stmt).all()

    def completed_rows(self, company_id: int, start: datetime, end: datetime):
        """(user_id, clock_in, clock_out) of completed shifts with clock_in in [start, end)."""
        stmt = select(Shift.user_id, Shift.clock_in, Shift.clock_out).where(
            Shift.company_id == company_id,
            Shift.status == STATUS_COMPLETED,
            Shift.clock_in >= start,
            Shift.clock_in < end,
        )
        return self.session.execute(stmt).all()

    def active_users(self, company_id: int) -> List[User]:
        stmt = (
            select(User)
            .where(User.company_id == company_id, User.is_active.is_(True))
            .order_by(User.full_name.asc(), User.id.asc())
        )
        return list(self.session.execute(stmt).scalars())

    def find_user(self, company_id: int, user_id: int) -> Optional[User]:
        stmt = select(User).where(User.id == user_id, User.company_id == company_id)
        return self.session.execute(stmt).scalars().first()

    # ---------- manager writes ----------

    def set_schedule(self, user: User, employment_type: str, shift_type: str) -> User:
        user.employment_type = employment_type
        user.shift_type = shift_type
        self.session.commit()
        return user

    def insert_completed(self, user_id: int, company_id: int,
                         clock_in: datetime, clock_out: datetime) -> Shift:
        shift = Shift(
            user_id=user_id,
            company_id=company_id,
            clock_in=clock_in,
            clock_out=clock_out,
            status=STATUS_COMPLETED,
        )
        self.session.add(shift)
        self.session.commit()
        return shift

    def rewrite_times(self, company_id: int, shift_id: int,
                      clock_in: datetime, clock_out: datetime, at: datetime) -> int:
        stmt = (
            update(Shift)
            .where(Shift.id == shift_id, Shift.company_id == company_id)
            .values(clock_in=clock_in, clock_out=clock_out,
                    status=STATUS_COMPLETED, updated_at=at)
            .execution_options(synchronize_session="fetch")
        )
        res = self.session.execute(stmt)
        self.session.commit()
        return res.rowcount or 0

    def delete(self, company_id: int, shift_id: int) -> int:
        stmt = (
            delete(Shift)
            .where(Shift.id == shift_id, Shift.company_id == company_id)
            .execution_options(synchronize_session="fetch")
        )
        res = self.session.execute(stmt)
        self.session.commit()
        return res.rowcount or 0
