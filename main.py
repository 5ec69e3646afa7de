# main.py
import os
import uvicorn
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from core.config import settings
from core.database import init_db
from parking.routers import router as parking_router

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

try:
    init_db()
except Exception as e:
    logger.error("Error creating database tables: %s", e)

app = FastAPI(
    title="Parking Front Desk API",
    description="Vehicle entry and exit, tariff billing, monthly passes and revenue reporting.",
    version="1.0.0",
)

origins_env = settings.CORS_ALLOW_ORIGINS
allow_origins = [o.strip() for o in origins_env.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_prefix = "/api/v1"
app.include_router(parking_router, prefix=api_prefix)


@app.get("/", tags=["Root"])
def read_root():
    return {"message": "Welcome to the parking front desk API"}


if __name__ == "__main__":
    uvicorn.run("main:app", host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
