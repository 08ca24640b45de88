import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scheduler.core import config
from scheduler.core.error_handlers import register_error_handlers
from scheduler.core.errors import SchedulerError
from scheduler.routes import availability_routes, booking_routes, event_type_routes
from scheduler.setup_db import ensure_schema

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate_runtime_config()
    try:
        ensure_schema()
        logger.info('Database initialized.')
    except SchedulerError:
        # Keep serving: the tables may already exist from an earlier run.
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')
    yield


app = FastAPI(title='Scheduler API', lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS'],
    allow_headers=['Content-Type', 'Authorization', 'Accept', 'X-Requested-With', 'Origin'],
)

register_error_handlers(app)


@app.get('/')
def root():
    return {'message': 'Backend server is running!'}


app.include_router(event_type_routes.router, prefix='/event-type')
app.include_router(availability_routes.router, prefix='/availability')
app.include_router(booking_routes.router, prefix='/bookings')
