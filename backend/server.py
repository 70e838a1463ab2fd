from fastapi import FastAPI, APIRouter
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv
from starlette.middleware.cors import CORSMiddleware
import os
import logging
from pathlib import Path

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from bootstrap import run_bootstrap_migrations
from routers import (
    auth_staff,
    certificates,
    checkin,
    judging,
    messages,
    participant,
    public,
    registrations,
    reports,
    settings,
)
from utils import S3_CLIENT, UPLOAD_DIR

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(title=f"{os.environ.get('EVENT_NAME', 'HackAbhigna')} API", version="1.0.0")
api_router = APIRouter(prefix="/api")

# Local storage fallback when no S3 bucket is configured
if S3_CLIENT is None:
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")


@app.on_event("startup")
async def startup_event():
    run_bootstrap_migrations()
    logger.info("Tables ensured and defaults seeded.")


for module in (
    public,
    auth_staff,
    registrations,
    settings,
    judging,
    participant,
    checkin,
    certificates,
    reports,
    messages,
):
    api_router.include_router(module.router)

# Include router and add middleware
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["*"],
    allow_headers=["*"],
)
