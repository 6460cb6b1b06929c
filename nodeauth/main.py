from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from nodeauth.config import settings
from nodeauth.database import engine, init_db
from nodeauth.logging_config import setup_logging
from nodeauth.middleware.logging import LoggingMiddleware
from nodeauth.middleware.rate_limit import limiter
from nodeauth.routers import identity
from nodeauth.scheduler import shutdown_scheduler, start_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, then run the phrase cleanup scheduler for the app's lifetime."""
    setup_logging()
    init_db(engine)
    start_scheduler()
    yield
    shutdown_scheduler()


app = FastAPI(
    title="NodeAuth",
    description="Hardware, DOS and signed-phrase admission for node operators",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(identity.router, prefix="/api/v1", tags=["id"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
