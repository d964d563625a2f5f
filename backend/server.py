"""
Withdrawal Support - Main Server

Wires the Camunda, OnBase and MongoDB collaborators into the disposition
services and exposes them under /api.
"""

from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient
from contextlib import asynccontextmanager
import logging

from services.withdrawal_config import (
    CASE_INSTANCE_COLLECTION, DAYS_THRESHOLD, DB_NAME, LOG_LEVEL, MONGO_URL, get_cors_origins
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ==================== ROUTERS ====================
from routes import cases

# ==================== SERVICES ====================
from services.camunda_client import get_camunda_client
from services.onbase_client import get_onbase_client
from services.case_instance_store import MongoCaseInstanceStore
from services.disposition import (
    BatchRunner, CaseInstanceReconciler, DataEntryTaskLookup, DispositionOrchestrator, EmailScanner, MrtScanner
)

db = None
mongo_client = None


# ==================== LIFESPAN ====================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global db, mongo_client

    logger.info("Starting Withdrawal Support service...")

    mongo_client = AsyncIOMotorClient(MONGO_URL)
    db = mongo_client[DB_NAME]
    store = MongoCaseInstanceStore(db[CASE_INSTANCE_COLLECTION])

    workflow_client = get_camunda_client()
    case_client = get_onbase_client()

    orchestrator = DispositionOrchestrator(
        CaseInstanceReconciler(store),
        workflow_client,
        stale_days_threshold=DAYS_THRESHOLD
    )
    cases.set_dependencies(
        BatchRunner(workflow_client, case_client, orchestrator),
        MrtScanner(workflow_client, case_client),
        DataEntryTaskLookup(store),
        EmailScanner(workflow_client, case_client)
    )

    logger.info("Withdrawal Support service started (threshold: %d business days)", DAYS_THRESHOLD)

    yield

    logger.info("Shutting down Withdrawal Support service...")
    if mongo_client:
        mongo_client.close()


# ==================== APP SETUP ====================
app = FastAPI(
    title="Withdrawal Support",
    description="Disposition of withdrawal cases waiting in the workflow engine",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")
api_router.include_router(cases.router)
app.include_router(api_router)


# ==================== ROOT ENDPOINTS ====================
@app.get("/")
async def root():
    return {
        "service": "Withdrawal Support",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/api/health")
async def health():
    return {
        "status": "healthy",
        "service": "withdrawal-support"
    }
