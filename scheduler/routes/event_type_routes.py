from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from scheduler.database import get_db
from scheduler.schemas.event_type import (
    EventTypeCreate,
    EventTypeDetailResponse,
    EventTypeResponse,
    EventTypeUpdate,
)
from scheduler.services import event_type_service

router = APIRouter(tags=['event-type'])


@router.get('')
def list_event_types(db: Session = Depends(get_db)):
    event_types = event_type_service.list_event_types(db)
    return {
        'message': 'Event types fetched successfully',
        'data': [EventTypeResponse.model_validate(event_type) for event_type in event_types],
    }


@router.get('/slug/{slug}')
def get_event_type_by_slug(slug: str, db: Session = Depends(get_db)):
    event_type = event_type_service.get_event_type_by_slug(db, slug)
    return {
        'message': 'Event type fetched successfully',
        'data': EventTypeDetailResponse.model_validate(event_type),
    }


@router.get('/{event_type_id}')
def get_event_type(event_type_id: int, db: Session = Depends(get_db)):
    event_type = event_type_service.get_event_type(db, event_type_id)
    return {
        'message': 'Event type fetched successfully',
        'data': EventTypeDetailResponse.model_validate(event_type),
    }


@router.post('', status_code=status.HTTP_201_CREATED)
def create_event_type(data: EventTypeCreate, db: Session = Depends(get_db)):
    event_type = event_type_service.create_event_type(db, data)
    return {
        'message': 'Event type created successfully',
        'data': EventTypeDetailResponse.model_validate(event_type),
    }


@router.put('/{event_type_id}')
def update_event_type(event_type_id: int, data: EventTypeUpdate, db: Session = Depends(get_db)):
    event_type = event_type_service.update_event_type(db, event_type_id, data)
    return {
        'message': 'Event type updated successfully',
        'data': EventTypeDetailResponse.model_validate(event_type),
    }


@router.delete('/{event_type_id}')
def delete_event_type(event_type_id: int, db: Session = Depends(get_db)):
    result = event_type_service.delete_event_type(db, event_type_id)
    return {'message': result['message'], 'data': result}
