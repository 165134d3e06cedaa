import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from db import AppointmentStore  # noqa: E402
from logging_config import RequestIDMiddleware, get_logger, setup_structured_logging  # noqa: E402
from models import (  # noqa: E402
  Appointment,
  BusySlotsResponse,
  CreateAppointment,
  CreatedResponse,
  SuccessResponse,
)
from services import AppointmentNotFound, AppointmentService, MissingFieldError  # noqa: E402

setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

store = AppointmentStore()
service = AppointmentService(store)


@asynccontextmanager
async def lifespan(app: FastAPI):
  store.ensure_initialized()
  logger.info("server_started", appointments_file=store.path)
  yield


app = FastAPI(title="Salon Booking API", lifespan=lifespan)

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
  CORSMiddleware,
  allow_origins=cors_origins,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)


def get_service() -> AppointmentService:
  return service


@app.exception_handler(MissingFieldError)
async def missing_field_handler(request: Request, exc: MissingFieldError):
  return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
  return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(AppointmentNotFound)
async def not_found_handler(request: Request, exc: AppointmentNotFound):
  return JSONResponse(status_code=404, content={"error": "not found"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
  # Sent from outside RequestIDMiddleware, so the header is added here
  request_id = getattr(request.state, "request_id", None)
  logger.exception("unhandled_error", path=request.url.path, request_id=request_id)
  headers = {"X-Request-ID": request_id} if request_id else None
  return JSONResponse(status_code=500, content={"error": "Internal server error"}, headers=headers)


@app.get("/api/health")
def health():
  return {"ok": True}


@app.get("/api/appointments", response_model=list[Appointment])
def list_appointments(svc: AppointmentService = Depends(get_service)):
  return svc.list_all()


@app.post("/api/appointments", response_model=CreatedResponse, status_code=201)
def create_appointment(payload: CreateAppointment, svc: AppointmentService = Depends(get_service)):
  appt = svc.create(payload)
  return CreatedResponse(appointment=appt)


@app.get("/api/appointments/today", response_model=list[Appointment])
def todays_appointments(svc: AppointmentService = Depends(get_service)):
  return svc.list_today()


@app.get("/api/appointments/busy/{date}", response_model=BusySlotsResponse)
def busy_slots(date: str, svc: AppointmentService = Depends(get_service)):
  return BusySlotsResponse(busy_slots=svc.list_busy_slots(date))


@app.delete("/api/appointments/{appointment_id}", response_model=SuccessResponse)
def cancel_appointment(appointment_id: str, svc: AppointmentService = Depends(get_service)):
  svc.cancel(appointment_id)
  return SuccessResponse()


if __name__ == "__main__":
  import uvicorn

  uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
