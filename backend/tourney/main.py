import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tourney.database import init_db
from tourney.routes import matches, pairings, tournaments

APP_NAME = "Tourney Pairing API"
APP_VERSION = "0.1.0"

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME, version=APP_VERSION)

# Frontend dev server plus anything listed in CORS_ORIGINS
_cors_origins = ["http://localhost:3000"]
_cors_origins.extend(o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(pairings.router, prefix="/api", tags=["pairings"])


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s %s started, CORS origins %s", APP_NAME, APP_VERSION, _cors_origins)


@app.get("/api/health")
def health_check():
    return {"app_name": APP_NAME, "version": APP_VERSION, "status": "healthy"}
