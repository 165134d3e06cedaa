import json
import os
import tempfile
from typing import List, Optional

from pydantic import ValidationError

from logging_config import get_logger
from models import Appointment

logger = get_logger(__name__)

_env_appointments_file = (os.getenv("APPOINTMENTS_FILE") or "").strip()

if not _env_appointments_file:
    # Fallback to a local JSON file. Prefer persisted path on Azure App Service.
    azure_wwwroot = "/home/site/wwwroot"
    base_dir = azure_wwwroot if os.path.isdir(azure_wwwroot) else "."
    APPOINTMENTS_FILE = os.path.join(base_dir, "data", "appointments.json")
else:
    APPOINTMENTS_FILE = _env_appointments_file

COLLECTION_KEY = "appointments"


class AppointmentStore:
    """The whole appointment collection, kept in one JSON file.

    Every read returns the full list and every write replaces the full file.
    """

    def __init__(self, path: str = APPOINTMENTS_FILE):
        self.path = path

    def ensure_initialized(self) -> None:
        if os.path.exists(self.path):
            return
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.save([])
        logger.info("appointments_file_created", path=self.path)

    def _read_records(self, warn: bool = True) -> Optional[list]:
        """Raw record list from the file, or None when the file can't be used."""
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            if warn:
                logger.warning("appointments_file_missing", path=self.path)
            return None
        except (OSError, ValueError) as exc:
            if warn:
                logger.warning("appointments_file_unreadable", path=self.path, error=str(exc))
            return None

        if not isinstance(data, dict):
            if warn:
                logger.warning("appointments_file_malformed", path=self.path, reason="not an object")
            return None
        records = data.get(COLLECTION_KEY) or []
        if not isinstance(records, list):
            if warn:
                logger.warning("appointments_file_malformed", path=self.path, reason="appointments is not a list")
            return None
        return records

    def load(self) -> List[Appointment]:
        # Fail open: a storage read fault never stops the service from answering
        records = self._read_records()
        if records is None:
            return []

        appointments = []
        for position, record in enumerate(records):
            try:
                appointments.append(Appointment.model_validate(record))
            except ValidationError as exc:
                logger.warning(
                    "appointment_record_skipped",
                    path=self.path,
                    position=position,
                    error=str(exc),
                )
        return appointments

    def _unparsed_records(self) -> list:
        unparsed = []
        for record in self._read_records(warn=False) or []:
            try:
                Appointment.model_validate(record)
            except ValidationError:
                unparsed.append(record)
        return unparsed

    def save(self, appointments: List[Appointment]) -> None:
        # Records load() had to skip are written back untouched, after the rest
        records = [a.to_record() for a in appointments] + self._unparsed_records()
        payload = {COLLECTION_KEY: records}
        directory = os.path.dirname(self.path) or "."
        # Write beside the target then rename, so readers never see a partial file
        fd, tmp_path = tempfile.mkstemp(prefix=".appointments-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
