from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import contextlib
import logging

from src.core.config import settings
from src.core.database import init_db

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    # SQL backend: make sure tables exist for local runs (deployments migrate with Alembic)
    if settings.store_backend == "sql":
        await init_db()
    logger.info(f"Earnings insight API ready for {settings.company_name} ({settings.company_ticker})")
    yield


app = FastAPI(
    title="Earnings Insight",
    description="Quarterly earnings-call sentiment and strategic theme tracking",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Earnings Insights", "description": "Transcript collection, analysis and trends"},
    ]
)

from src.web.routers import register_routers

register_routers(app)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
