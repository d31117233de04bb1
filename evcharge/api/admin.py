from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from evcharge.api.deps import get_booking_service, get_station_service, require_admin
from evcharge.api.users import to_image_file
from evcharge.services.booking import BookingService
from evcharge.services.stations import NewStation, StationService

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.post("/add-station", status_code=201, tags=["admin"])  # /api/admin/add-station (multipart)
def add_station(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    charging_type: Optional[str] = Form(None),
    power_capacity: Optional[str] = Form(None),
    pricing_per_kWh: Optional[float] = Form(None),
    availability: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    stations: StationService = Depends(get_station_service),
):
    form = NewStation(
        name=name,
        email=email,
        password=password,
        brand=brand,
        charging_type=charging_type,
        power_capacity=power_capacity,
        pricing_per_kWh=pricing_per_kWh,
        availability=availability,
        about=about,
        address=address,
    )
    station = stations.add_station(form, to_image_file(image))
    return {"success": True, "message": "Estación de carga creada", "data": station.to_response()}


@router.get("/all-stations", tags=["admin"])  # /api/admin/all-stations
def all_stations(stations: StationService = Depends(get_station_service)):
    return {"success": True, "stations": [s.to_response() for s in stations.list_admin()]}


@router.get("/all-appointments", tags=["admin"])  # /api/admin/all-appointments
def all_appointments(booking: BookingService = Depends(get_booking_service)):
    return {"success": True, "appointments": [a.to_response() for a in booking.list_all()]}


@router.delete("/cancel-appointment/{appointment_id}", tags=["admin"])  # /api/admin/cancel-appointment/{id}
def cancel_appointment(appointment_id: str, booking: BookingService = Depends(get_booking_service)):
    appointment = booking.cancel_as_admin(appointment_id)
    return {"success": True, "message": "Cita marcada como cancelada", "appointment": appointment.to_response()}


@router.get("/dashboard", tags=["admin"])  # /api/admin/dashboard
def dashboard(booking: BookingService = Depends(get_booking_service)):
    return {"success": True, "dashData": booking.dashboard_summary().to_response()}
