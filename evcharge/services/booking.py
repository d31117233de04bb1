"""
Flujo de reservas de citas de carga.

Crea citas con una copia (snapshot) del usuario y de la estación, las lista y
las cancela. El usuario cancela borrando su cita; el admin la marca como
cancelada y queda en el histórico.

No se comprueba si el slot ya está reservado: dos reservas del mismo slot
producen dos citas independientes.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from evcharge.database.repositories import (
    AppointmentRepository,
    StationRepository,
    UserRepository,
    utcnow,
)
from evcharge.models.models import (
    Appointment,
    DashboardSummary,
    LatestAppointment,
    StationSnapshot,
    UserSnapshot,
)
from evcharge.services.errors import (
    InvalidStationData,
    NotAuthenticated,
    NotFound,
    ValidationError,
    store_errors,
)

logger = logging.getLogger(__name__)

LATEST_LIMIT = 5


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == {}


def parse_station_snapshot(raw: Dict[str, Any]) -> StationSnapshot:
    try:
        return StationSnapshot.model_validate(raw)
    except PydanticValidationError:
        raise InvalidStationData()


class BookingService:
    def __init__(
        self,
        users: UserRepository,
        stations: StationRepository,
        appointments: AppointmentRepository,
    ):
        self.users = users
        self.stations = stations
        self.appointments = appointments

    # ------------------------------------------------------------------
    # Reservas
    # ------------------------------------------------------------------
    def create_booking(
        self,
        caller_user_id: str,
        station_data: Optional[Dict[str, Any]],
        slot_date: Optional[str],
        slot_time: Optional[str],
        amount: Optional[float],
    ) -> Appointment:
        fields = {
            "stationData": station_data,
            "slotData": slot_date,
            "slotTime": slot_time,
            "amount": amount,
        }
        missing = [name for name, value in fields.items() if _is_missing(value)]
        if missing:
            logger.warning(f"Reserva rechazada, faltan campos: {missing}")
            raise ValidationError(f"Faltan campos requeridos: {', '.join(missing)}")
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("Importe inválido")
        if not math.isfinite(amount):
            raise ValidationError("Importe inválido")
        if amount < 0:
            raise ValidationError("El importe no puede ser negativo")

        station = parse_station_snapshot(station_data)

        with store_errors("create_booking"):
            user = self.users.find_by_id(caller_user_id, {"name": 1, "email": 1})
            if not user:
                logger.warning(f"Reserva rechazada, usuario {caller_user_id} no existe")
                raise NotAuthenticated("Usuario no encontrado")

            doc = {
                "userId": caller_user_id,
                "statId": station.id,
                "userData": UserSnapshot(
                    id=caller_user_id, name=user.get("name", ""), email=user.get("email", "")
                ).model_dump(),
                "stationData": station.model_dump(by_alias=True),
                "slotData": slot_date,
                "slotTime": slot_time,
                "amount": amount,
                "isCancelled": False,
                "createdAt": utcnow(),
            }
            saved = self.appointments.insert(doc)

        appointment = Appointment.from_document(saved)
        logger.info(
            f"✅ Cita {appointment.id} reservada: usuario={caller_user_id} "
            f"estación={station.id} slot={slot_date} {slot_time}"
        )
        return appointment

    # ------------------------------------------------------------------
    # Cancelaciones
    # ------------------------------------------------------------------
    def cancel_as_user(self, caller_user_id: str, appointment_id: str) -> Appointment:
        """Borra la cita sólo si pertenece al usuario; no distingue 'no existe' de 'no es tuya'."""
        with store_errors("cancel_as_user"):
            deleted = self.appointments.delete_owned(appointment_id, caller_user_id)
        if not deleted:
            logger.warning(f"⚠️ Cita {appointment_id} no encontrada para usuario {caller_user_id}")
            raise NotFound("Cita no encontrada o ya cancelada")
        logger.info(f"✅ Cita {appointment_id} cancelada (borrada) por usuario {caller_user_id}")
        return Appointment.from_document(deleted)

    def cancel_as_admin(self, appointment_id: str) -> Appointment:
        """Marca la cita como cancelada; se conserva en el histórico."""
        appointment_id = (appointment_id or "").strip()
        if not appointment_id:
            raise ValidationError("Falta el ID de la cita")
        with store_errors("cancel_as_admin"):
            updated = self.appointments.mark_cancelled(appointment_id)
        if not updated:
            logger.warning(f"⚠️ Cita {appointment_id} no encontrada")
            raise NotFound("Cita no encontrada")
        logger.info(f"✅ Cita {appointment_id} marcada como cancelada por admin")
        return Appointment.from_document(updated)

    # ------------------------------------------------------------------
    # Listados
    # ------------------------------------------------------------------
    def list_for_user(self, caller_user_id: str) -> List[Appointment]:
        with store_errors("list_for_user"):
            docs = self.appointments.find_by_user(caller_user_id)
        return [Appointment.from_document(d) for d in docs]

    def list_all(self) -> List[Appointment]:
        with store_errors("list_all"):
            docs = self.appointments.find_all()
        return [Appointment.from_document(d) for d in docs]

    def dashboard_summary(self) -> DashboardSummary:
        with store_errors("dashboard_summary"):
            station_count = self.stations.count()
            appointment_count = self.appointments.count()
            user_count = self.users.count()
            latest = self.appointments.latest(LATEST_LIMIT)
        return DashboardSummary(
            stationCount=station_count,
            appointmentCount=appointment_count,
            userCount=user_count,
            latestAppointments=[LatestAppointment.model_validate(d) for d in latest],
        )
