import argparse
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

import structlog

from db.database import init_db, get_conn
from config import load_config, configure_logging
from routes import flashcards, decks, tags, study_sessions, revise
from utils.errors import HanziFiveError
from utils.revise import reconcile
from utils.streaks import StreakLedger

logger = structlog.get_logger(__name__)


def startup() -> None:
    """Load config, set up logging, create tables and repair the streak ledger."""
    config = load_config()  # Ensures config exists
    configure_logging(config["app"]["environment"])
    init_db()
    with get_conn() as conn:
        reconcile(conn, StreakLedger())


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup()
    yield


app = FastAPI(
    title="HanziFive",
    description="Local-first Chinese character flashcards with a self-maintaining revise deck",
    lifespan=lifespan,
)

app.include_router(flashcards.router, prefix="/flashcards", tags=["flashcards"])
app.include_router(decks.router, prefix="/decks", tags=["decks"])
app.include_router(tags.router, prefix="/tags", tags=["tags"])
app.include_router(study_sessions.router, prefix="/study-sessions", tags=["study-sessions"])
app.include_router(revise.router, prefix="/revise", tags=["revise"])


@app.exception_handler(HanziFiveError)
async def hanzifive_error_handler(request: Request, exc: HanziFiveError):
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.get("/")
async def home():
    return {"status": "ok", "app": "HanziFive"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="HanziFive App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    if args.init:
        startup()
        logger.info("initialized", config_dir="~/.hanzifive/")
        sys.exit(0)
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
