"""
Schedule persistence and progress tracking.
Stores each generated schedule as one JSON document per user. Saving a new
schedule deactivates the user's previous ones in the same transaction, so a
user has at most one active schedule.
"""

import copy
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import InvalidProblemIndex, NotFoundFailure, PersistenceFailure
from ..models import StudySchedule
from ..telemetry import emit_event
from .schedule_service import ScheduleDay, schedule_from_data, schedule_to_data

logger = logging.getLogger(__name__)


class ScheduleStore:
    """Progress store backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _active_record(self, db: Session, user_id: str) -> Optional[StudySchedule]:
        return (
            db.query(StudySchedule)
            .filter(StudySchedule.user_id == user_id, StudySchedule.is_active == True)  # noqa: E712
            .order_by(StudySchedule.created_at.desc(), StudySchedule.id.desc())
            .first()
        )

    def save_schedule(self, user_id: str, schedule: List[ScheduleDay]) -> int:
        """
        Persist a schedule as the user's only active schedule.

        Returns:
            The new record id

        Raises:
            PersistenceFailure: if the store rejects the write
        """
        db = self.session_factory()
        try:
            db.query(StudySchedule).filter(
                StudySchedule.user_id == user_id,
                StudySchedule.is_active == True,  # noqa: E712
            ).update({StudySchedule.is_active: False}, synchronize_session=False)

            record = StudySchedule(
                user_id=user_id,
                schedule_data=schedule_to_data(schedule),
                is_active=True,
            )
            db.add(record)
            db.commit()
            db.refresh(record)
            record_id = record.id
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Failed to save schedule for {user_id}: {e}") from e
        finally:
            db.close()

        emit_event("schedule_saved", user_id=user_id, record_id=record_id, days=len(schedule))
        return record_id

    def load_active_schedule(self, user_id: str) -> Optional[List[ScheduleDay]]:
        """Return the user's active schedule, or None."""
        db = self.session_factory()
        try:
            record = self._active_record(db, user_id)
            if record is None:
                return None
            return schedule_from_data(record.schedule_data)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to load schedule for {user_id}: {e}") from e
        finally:
            db.close()

    def set_completion(
        self,
        user_id: str,
        day_index: int,
        problem_index: int,
        completed: bool,
    ) -> bool:
        """
        Set the completed flag of one scheduled problem.

        Args:
            user_id: Schedule owner
            day_index: 0-based position of the day in the schedule
            problem_index: 0-based position of the problem within the day
            completed: New flag value

        Raises:
            NotFoundFailure: if the user has no active schedule
            InvalidProblemIndex: if the address is out of range
            PersistenceFailure: if the store rejects the update
        """
        db = self.session_factory()
        try:
            record = self._active_record(db, user_id)
            if record is None:
                raise NotFoundFailure(f"No active schedule for {user_id}")

            data = copy.deepcopy(record.schedule_data)
            if not 0 <= day_index < len(data):
                raise InvalidProblemIndex(f"Invalid day index {day_index}")
            problems = data[day_index].get("problems", [])
            if not 0 <= problem_index < len(problems):
                raise InvalidProblemIndex(f"Invalid problem index {problem_index}")

            problems[problem_index]["completed"] = bool(completed)
            # Assign a new object so the JSON column is flagged dirty
            record.schedule_data = data
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceFailure(f"Failed to update progress for {user_id}: {e}") from e
        finally:
            db.close()

        emit_event(
            "progress_updated",
            user_id=user_id,
            day_index=day_index,
            problem_index=problem_index,
            completed=bool(completed),
        )
        return True


# Singleton instance
_schedule_store: Optional[ScheduleStore] = None


def get_schedule_store() -> ScheduleStore:
    """Get the singleton schedule store bound to the application database."""
    global _schedule_store
    if _schedule_store is None:
        from ..database import SessionLocal

        _schedule_store = ScheduleStore(SessionLocal)
    return _schedule_store
