import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leadflow.core import database
from leadflow.core.settings import settings
from leadflow.domains.authorization.routes import router as authorization_router
from leadflow.domains.organizations.routes import router as organizations_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await database.connect()
    yield
    # Shutdown
    await database.disconnect()


app = FastAPI(
    title="LeadFlow API",
    description="Authorization and visibility resolution for the LeadFlow CRM",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(organizations_router, prefix="/api/v1")
app.include_router(authorization_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "LeadFlow API is running"}


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
