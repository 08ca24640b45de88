from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from scheduler.database import get_db
from scheduler.schemas.availability import (
    AvailabilityCreate,
    AvailabilityResponse,
    AvailabilityUpdate,
    IntervalCreate,
    IntervalResponse,
    IntervalUpdate,
)
from scheduler.services import availability_service

router = APIRouter(tags=['availability'])


@router.get('')
def list_availabilities(db: Session = Depends(get_db)):
    availabilities = availability_service.list_availabilities(db)
    return {
        'message': 'Availabilities fetched successfully',
        'data': [AvailabilityResponse.model_validate(item) for item in availabilities],
    }


@router.get('/default')
def get_default_availability(db: Session = Depends(get_db)):
    availability = availability_service.get_default_availability(db)
    return {
        'message': 'Default availability fetched successfully',
        'data': AvailabilityResponse.model_validate(availability) if availability is not None else None,
    }


@router.put('/intervals/{interval_id}')
def update_interval(interval_id: int, data: IntervalUpdate, db: Session = Depends(get_db)):
    interval = availability_service.update_interval(db, interval_id, data)
    return {
        'message': 'Interval updated successfully',
        'data': IntervalResponse.model_validate(interval),
    }


@router.delete('/intervals/{interval_id}')
def delete_interval(interval_id: int, db: Session = Depends(get_db)):
    result = availability_service.delete_interval(db, interval_id)
    return {'message': result['message'], 'data': result}


@router.get('/{availability_id}')
def get_availability(availability_id: int, db: Session = Depends(get_db)):
    availability = availability_service.get_availability(db, availability_id)
    return {
        'message': 'Availability fetched successfully',
        'data': AvailabilityResponse.model_validate(availability),
    }


@router.post('', status_code=status.HTTP_201_CREATED)
def create_availability(data: AvailabilityCreate, db: Session = Depends(get_db)):
    availability = availability_service.create_availability(db, data)
    return {
        'message': 'Availability created successfully',
        'data': AvailabilityResponse.model_validate(availability),
    }


@router.put('/{availability_id}')
def update_availability(availability_id: int, data: AvailabilityUpdate, db: Session = Depends(get_db)):
    availability = availability_service.update_availability(db, availability_id, data)
    return {
        'message': 'Availability updated successfully',
        'data': AvailabilityResponse.model_validate(availability),
    }


@router.delete('/{availability_id}')
def delete_availability(availability_id: int, db: Session = Depends(get_db)):
    result = availability_service.delete_availability(db, availability_id)
    return {'message': result['message'], 'data': result}


@router.post('/{availability_id}/intervals', status_code=status.HTTP_201_CREATED)
def add_interval(availability_id: int, data: IntervalCreate, db: Session = Depends(get_db)):
    interval = availability_service.add_interval(db, availability_id, data)
    return {
        'message': 'Interval added successfully',
        'data': IntervalResponse.model_validate(interval),
    }
