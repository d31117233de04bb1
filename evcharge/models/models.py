# models.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _str_id(value: Any) -> Any:
    # ObjectId -> str para exponerlo en JSON
    return str(value) if value is not None else value


class Address(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    line1: str = Field(min_length=1)
    line2: str = Field(min_length=1)


class UserSnapshot(BaseModel):
    """Copia de los datos del usuario en el momento de la reserva."""

    id: str
    name: str
    email: str


class StationSnapshot(BaseModel):
    """
    Copia de la estación embebida en la cita.
    Exige `_id`, `name`, `location` e `image`; el resto de claves enviadas
    por el cliente se conservan tal cual.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id", min_length=1)
    name: str = Field(min_length=1)
    location: Union[str, Dict[str, Any]]
    image: str = Field(min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return _str_id(v)

    @field_validator("location")
    @classmethod
    def _location_not_empty(cls, v):
        if not v:
            raise ValueError("location vacío")
        return v


class Appointment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    userId: str
    statId: str
    userData: UserSnapshot
    stationData: StationSnapshot
    slotData: str
    slotTime: str
    amount: float
    isCancelled: bool = False
    createdAt: datetime

    @field_validator("id", "userId", "statId", mode="before")
    @classmethod
    def _coerce_ids(cls, v):
        return _str_id(v)

    @classmethod
    def from_document(cls, doc: dict) -> "Appointment":
        return cls.model_validate(doc)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class LatestAppointment(BaseModel):
    """Proyección reducida usada en el dashboard de admin."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    stationData: StationSnapshot
    slotData: str
    slotTime: str
    isCancelled: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return _str_id(v)


class DashboardSummary(BaseModel):
    stationCount: int
    appointmentCount: int
    userCount: int
    latestAppointments: List[LatestAppointment]

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class User(BaseModel):
    """Usuario sin el hash de password."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[Address] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    image: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return _str_id(v)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Station(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    email: Optional[str] = None
    brand: str
    image: str
    charging_type: str
    power_capacity: str
    pricing_per_kWh: float = Field(ge=0)
    availability: str
    about: str
    address: Address
    date: datetime
    slots_booked: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return _str_id(v)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
