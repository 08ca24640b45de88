import datetime as dt

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from scheduler.database import get_db
from scheduler.schemas.booking import BookingCreate, BookingFilters, BookingStatus, BookingUpdate
from scheduler.services import booking_service

router = APIRouter(tags=['bookings'])


@router.get('')
def list_bookings(
    event_type_id: int | None = Query(default=None),
    date: dt.date | None = Query(default=None),
    booking_status: BookingStatus | None = Query(default=None),
    client_email: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    filters = BookingFilters(
        event_type_id=event_type_id,
        date=date,
        booking_status=booking_status,
        client_email=client_email,
    )
    return {
        'message': 'Bookings fetched successfully',
        'data': booking_service.list_bookings(db, filters),
    }


@router.get('/event-type/{event_type_id}')
def list_bookings_by_event_type(
    event_type_id: int,
    date: dt.date | None = Query(default=None),
    booking_status: BookingStatus | None = Query(default=None),
    db: Session = Depends(get_db),
):
    bookings = booking_service.list_bookings_by_event_type(
        db,
        event_type_id,
        booking_date=date,
        booking_status=booking_status,
    )
    return {'message': 'Bookings fetched successfully', 'data': bookings}


@router.get('/{booking_id}')
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    return {
        'message': 'Booking fetched successfully',
        'data': booking_service.get_booking(db, booking_id),
    }


@router.post('', status_code=status.HTTP_201_CREATED)
def create_booking(data: BookingCreate, db: Session = Depends(get_db)):
    return {
        'message': 'Booking created successfully',
        'data': booking_service.create_booking(db, data),
    }


@router.put('/{booking_id}')
def update_booking(booking_id: int, data: BookingUpdate, db: Session = Depends(get_db)):
    return {
        'message': 'Booking updated successfully',
        'data': booking_service.update_booking(db, booking_id, data),
    }


@router.delete('/{booking_id}')
def delete_booking(booking_id: int, db: Session = Depends(get_db)):
    result = booking_service.delete_booking(db, booking_id)
    return {'message': result['message'], 'data': result}
