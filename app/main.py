from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import LOG_LEVEL
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.database.db import Base, engine
from app.models import categories, events, requests, users  # noqa: F401
from app.routes import admin
from app.routes import categories as category_routes
from app.routes import events as event_routes
from app.routes import requests as request_routes
from app.routes import user_events

setup_logging(LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables (in production, use migrations such as Alembic)
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Event Participation Service", lifespan=lifespan)

# Configure CORS
origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include the routers
app.include_router(event_routes.router)
app.include_router(category_routes.router)
app.include_router(user_events.router)
app.include_router(request_routes.router)
app.include_router(admin.router)
