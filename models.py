from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class AppointmentStatus(str, Enum):
  CONFIRMED = "confirmado"
  CANCELLED = "cancelado"


class CamelModel(BaseModel):
  # Stored and served with the camelCase keys the booking form posts
  model_config = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    coerce_numbers_to_str=True,
  )


class Appointment(CamelModel):
  # Unknown keys in the file are carried through to the next save
  model_config = ConfigDict(extra="allow")

  id: str
  service: str
  service_name: str = ""
  service_price: str = ""
  date: str
  time: str
  name: str
  phone: str
  email: str = ""
  comments: str = ""
  status: AppointmentStatus = AppointmentStatus.CONFIRMED
  created_at: str

  @field_validator("service_name", "service_price", "email", "comments", mode="before")
  @classmethod
  def blank_when_null(cls, value):
    return "" if value is None else value

  def to_record(self) -> dict:
    return self.model_dump(mode="json", by_alias=True)


class CreateAppointment(CamelModel):
  """Booking form payload.

  Every field is optional here so that a missing required field is reported
  by the service as a 400 naming the field, not as a schema error.
  """

  service: Optional[str] = None
  service_name: Optional[str] = None
  service_price: Optional[str] = None
  date: Optional[str] = None
  time: Optional[str] = None
  name: Optional[str] = None
  phone: Optional[str] = None
  email: Optional[str] = None
  comments: Optional[str] = None


class CreatedResponse(BaseModel):
  success: bool = True
  appointment: Appointment


class SuccessResponse(BaseModel):
  success: bool = True


class BusySlotsResponse(CamelModel):
  busy_slots: list[str]
