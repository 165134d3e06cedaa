import threading
import time as _time
from datetime import date as _date, datetime, timezone
from typing import List, Optional

from db import AppointmentStore
from logging_config import get_logger
from models import Appointment, AppointmentStatus, CreateAppointment

logger = get_logger(__name__)

# Checked in this order; only the first missing one is reported
REQUIRED_FIELDS = ("service", "date", "time", "name", "phone")


class BookingError(Exception):
  """Base class for errors the API reports back to the caller."""


class MissingFieldError(BookingError):
  def __init__(self, field: str):
    self.field = field
    super().__init__(f"Missing required field: {field}")


class AppointmentNotFound(BookingError):
  def __init__(self, appointment_id: str):
    self.appointment_id = appointment_id
    super().__init__("not found")


def validate(payload: CreateAppointment) -> Optional[str]:
  """Return the first missing required field, or None when all are present."""
  for field in REQUIRED_FIELDS:
    if not getattr(payload, field):
      return field
  return None


def now_iso() -> str:
  return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_id(existing: List[Appointment]) -> str:
  candidate = int(_time.time() * 1000)
  numeric = [int(a.id) for a in existing if a.id.isdecimal()]
  if numeric and candidate <= max(numeric):
    candidate = max(numeric) + 1
  return str(candidate)


class AppointmentService:
  def __init__(self, store: AppointmentStore):
    self.store = store
    # One writer at a time for the load -> mutate -> save cycle
    self._write_lock = threading.Lock()

  def create(self, payload: CreateAppointment) -> Appointment:
    missing = validate(payload)
    if missing:
      raise MissingFieldError(missing)

    with self._write_lock:
      appointments = self.store.load()
      appt = Appointment(
        id=next_id(appointments),
        service=payload.service,
        service_name=payload.service_name or "",
        service_price=payload.service_price or "",
        date=payload.date,
        time=payload.time,
        name=payload.name,
        phone=payload.phone,
        email=payload.email or "",
        comments=payload.comments or "",
        status=AppointmentStatus.CONFIRMED,
        created_at=now_iso(),
      )
      appointments.append(appt)
      self.store.save(appointments)

    logger.info("appointment_created", appointment_id=appt.id, date=appt.date, time=appt.time)
    return appt

  def list_all(self) -> List[Appointment]:
    return self.store.load()

  def list_busy_slots(self, date: str) -> List[str]:
    # Duplicates are kept: two bookings on one slot is a conflict worth showing
    return [
      a.time for a in self.store.load()
      if a.date == date and a.status != AppointmentStatus.CANCELLED
    ]

  def list_today(self, today: Optional[_date] = None) -> List[Appointment]:
    day = (today or _date.today()).isoformat()
    todays = [
      a for a in self.store.load()
      if a.date == day and a.status == AppointmentStatus.CONFIRMED
    ]
    return sorted(todays, key=lambda a: a.time)

  def cancel(self, appointment_id: str) -> Appointment:
    with self._write_lock:
      appointments = self.store.load()
      appt = next((a for a in appointments if a.id == appointment_id), None)
      if appt is None:
        raise AppointmentNotFound(appointment_id)
      appt.status = AppointmentStatus.CANCELLED
      self.store.save(appointments)

    logger.info("appointment_cancelled", appointment_id=appointment_id)
    return appt
