"""Alta de estaciones de carga (admin) y listados."""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pymongo.errors import DuplicateKeyError

from evcharge.auth.security import hash_password
from evcharge.client.blob_storage import ImageFile
from evcharge.database.repositories import StationRepository
from evcharge.models.models import Station
from evcharge.services.accounts import is_valid_email, parse_address
from evcharge.services.errors import InternalError, ServiceError, ValidationError, store_errors

logger = logging.getLogger(__name__)

_LOWER = re.compile(r"[a-z]")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"\d")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")


class NewStation(BaseModel):
    """Campos del formulario de alta (todos opcionales aquí; se validan en el servicio)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    brand: Optional[str] = None
    charging_type: Optional[str] = None
    power_capacity: Optional[str] = None
    pricing_per_kWh: Optional[float] = None
    availability: Optional[str] = None
    about: Optional[str] = None
    address: Optional[str] = None  # JSON: {"line1": ..., "line2": ...}


def is_strong_password(password: str) -> bool:
    return (
        len(password) >= 8
        and bool(_LOWER.search(password))
        and bool(_UPPER.search(password))
        and bool(_DIGIT.search(password))
        and bool(_SYMBOL.search(password))
    )


class StationService:
    def __init__(self, stations: StationRepository, blob_store=None):
        self.stations = stations
        self.blob_store = blob_store

    def add_station(self, form: NewStation, image: Optional[ImageFile]) -> Station:
        values = form.model_dump()
        missing = [k for k, v in values.items() if v is None or v == ""]
        if missing:
            raise ValidationError("Todos los campos son obligatorios")
        if form.pricing_per_kWh < 0:
            raise ValidationError("El precio por kWh no puede ser negativo")

        address = parse_address(form.address)

        if not is_valid_email(form.email):
            raise ValidationError("Introduce un email válido")
        if not is_strong_password(form.password):
            raise ValidationError("La contraseña debe ser robusta")
        if image is None:
            raise ValidationError("La imagen es obligatoria")
        if self.blob_store is None:
            raise InternalError("La subida de imágenes no está configurada")

        with store_errors("add_station"):
            if self.stations.find_by_email(form.email):
                raise ValidationError("Ya existe una estación con ese email")

        image_url = self.blob_store.upload(image)
        doc = {
            "name": form.name,
            "email": form.email,
            "password_hash": hash_password(form.password),
            "brand": form.brand,
            "image": image_url,
            "charging_type": form.charging_type,
            "power_capacity": form.power_capacity,
            "pricing_per_kWh": form.pricing_per_kWh,
            "availability": form.availability,
            "about": form.about,
            "address": address.model_dump(),
        }
        try:
            with store_errors("add_station"):
                try:
                    saved = self.stations.create(doc)
                except DuplicateKeyError:
                    raise ValidationError("Ya existe una estación con ese email")
        except ServiceError:
            # la estación no se guardó: la imagen subida no la referencia nadie
            self.blob_store.discard(image_url)
            raise

        station = Station.model_validate(saved)
        logger.info(f"✅ Estación {station.id} ({station.name}) creada")
        return station

    def list_public(self) -> List[Station]:
        with store_errors("list_public"):
            docs = self.stations.list(StationRepository.PUBLIC_PROJECTION)
        return [Station.model_validate(d) for d in docs]

    def list_admin(self) -> List[Station]:
        with store_errors("list_admin"):
            docs = self.stations.list(StationRepository.ADMIN_PROJECTION)
        return [Station.model_validate(d) for d in docs]
