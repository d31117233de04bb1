from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field

from evcharge.api.deps import get_account_service, get_booking_service, get_current_user_id
from evcharge.client.blob_storage import ImageFile
from evcharge.services.accounts import AccountService
from evcharge.services.booking import BookingService

router = APIRouter(prefix="/user")


class BookAppointmentBody(BaseModel):
    stationData: Optional[Dict[str, Any]] = None
    slotData: Optional[str] = None
    slotTime: Optional[str] = None
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)


def to_image_file(upload: Optional[UploadFile]) -> Optional[ImageFile]:
    if upload is None or not upload.filename:
        return None
    return ImageFile(data=upload.file.read(), filename=upload.filename, content_type=upload.content_type)


@router.get("/get-profile", tags=["users"])  # /api/user/get-profile
def get_profile(
    user_id: str = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    user = accounts.get_profile(user_id)
    return {"success": True, "user": user.to_response()}


@router.post("/update-profile", tags=["users"])  # /api/user/update-profile (multipart)
def update_profile(
    name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    dob: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    user = accounts.update_profile(
        user_id, name=name, phone=phone, gender=gender, dob=dob, address=address, image=to_image_file(image)
    )
    return {"success": True, "message": "Perfil actualizado", "user": user.to_response()}


@router.post("/book-appointment", tags=["appointments"])  # /api/user/book-appointment
def book_appointment(
    body: BookAppointmentBody,
    user_id: str = Depends(get_current_user_id),
    booking: BookingService = Depends(get_booking_service),
):
    appointment = booking.create_booking(user_id, body.stationData, body.slotData, body.slotTime, body.amount)
    return {"success": True, "message": "Cita reservada", "appointment": appointment.to_response()}


@router.get("/list-appointment", tags=["appointments"])  # /api/user/list-appointment
def list_appointments(
    user_id: str = Depends(get_current_user_id),
    booking: BookingService = Depends(get_booking_service),
):
    appointments = booking.list_for_user(user_id)
    return {"success": True, "appointments": [a.to_response() for a in appointments]}


@router.delete("/cancel-appointment/{appointment_id}", tags=["appointments"])  # /api/user/cancel-appointment/{id}
def cancel_appointment(
    appointment_id: str,
    user_id: str = Depends(get_current_user_id),
    booking: BookingService = Depends(get_booking_service),
):
    appointment = booking.cancel_as_user(user_id, appointment_id)
    return {"success": True, "message": "Cita cancelada", "appointment": appointment.to_response()}
