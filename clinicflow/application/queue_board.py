"""Client-side view of the appointment queue.

Holds a local list of appointments, applies status changes optimistically
and rolls them back when the store rejects the write. Change notifications
are merged row by row instead of re-fetching the whole list.
"""
from dataclasses import fields, replace
from typing import Callable, Dict, List, Optional
import logging

from .ports.appointments_repo import AppointmentDto
from .ports.change_feed import ChangeEvent, DELETE
from .services.lifecycle import transition
from .services.slot_capacity import bucket_hour
from ..exceptions import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

_APPOINTMENT_FIELDS = {f.name for f in fields(AppointmentDto)}


def _sort_key(a: AppointmentDto):
    hour = bucket_hour(a.time)
    return (a.date, hour if hour is not None else 24, a.time)


class QueueBoard:
    def __init__(self, appointments: List[AppointmentDto], persist_status: Callable[[str, str], None]):
        self._items: List[AppointmentDto] = sorted(appointments, key=_sort_key)
        self._persist_status = persist_status

    @property
    def appointments(self) -> List[AppointmentDto]:
        return list(self._items)

    def get(self, appointment_id: str) -> Optional[AppointmentDto]:
        return next((a for a in self._items if a.id == appointment_id), None)

    def apply_status(self, appointment_id: str, new_status: str) -> AppointmentDto:
        current = self.get(appointment_id)
        if current is None:
            raise NotFoundError("Appointment not found")
        # Invalid edges are rejected before anything changes locally
        updated = transition(current, new_status)

        previous = list(self._items)
        self._items = [updated if a.id == appointment_id else a for a in self._items]
        try:
            self._persist_status(appointment_id, updated.status)
        except PersistenceError:
            logger.warning(f"Status update for {appointment_id} failed, reverting to '{current.status}'")
            self._items = previous
            raise
        return updated

    def apply_change(self, event: ChangeEvent) -> None:
        row_id = event.row.get("id")
        if row_id is None:
            return
        if event.event == DELETE:
            self._items = [a for a in self._items if a.id != row_id]
            return

        values: Dict = {k: v for k, v in event.row.items() if k in _APPOINTMENT_FIELDS}
        existing = self.get(row_id)
        if existing is not None:
            merged = replace(existing, **values)
            self._items = [merged if a.id == row_id else a for a in self._items]
        else:
            try:
                self._items.append(AppointmentDto(**values))
            except TypeError:
                logger.warning(f"Ignoring incomplete appointment row {row_id} from change feed")
                return
        self._items.sort(key=_sort_key)
