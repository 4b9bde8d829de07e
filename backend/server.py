"""FastAPI server exposing the antenna trigger for external schedulers."""
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv
from fastapi import APIRouter, BackgroundTasks, FastAPI, Header, HTTPException
from fastapi.responses import PlainTextResponse
from starlette.middleware.cors import CORSMiddleware

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / ".env")

from antenna.config import ANTENNA_SECRET_KEY, configure_logging  # noqa: E402
from antenna.database import UPDATES_COLLECTION, UpdateStore, get_db  # noqa: E402
from antenna.errors import AntennaError  # noqa: E402

configure_logging()
logger = logging.getLogger(__name__)

RUNS_COLLECTION = "antenna_runs"
MAX_LISTED_UPDATES = 200

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Terminal Antenna API")
api_router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
@app.on_event("startup")
async def startup():
    try:
        await UpdateStore(get_db()[UPDATES_COLLECTION]).ensure_indexes()
    except AntennaError as e:
        logger.warning(f"Index setup failed (will retry on first run): {e}")


# ---------------------------------------------------------------------------
# Antenna trigger
# ---------------------------------------------------------------------------
async def _run_antenna_task(run_id: str):
    db = get_db()
    status, error = "completed", None
    stats = {}
    try:
        from antenna.main import run_antenna
        result = await run_antenna(run_id)
        stats = result.get("stats", {})
        if result.get("halted"):
            error = "; ".join(result.get("errors", []))
    except AntennaError as e:
        logger.error(f"Antenna run {run_id} failed: {e}", exc_info=True)
        status, error = "failed", str(e)
    except Exception as e:
        logger.error(f"Antenna run {run_id} crashed: {e}", exc_info=True)
        status, error = "failed", f"{type(e).__name__}: {e}"

    await db[RUNS_COLLECTION].update_one(
        {"run_id": run_id},
        {"$set": {"status": status, "error": error, "stats": stats,
                  "updated_at": datetime.now(timezone.utc).isoformat()}},
        upsert=True,
    )


@api_router.post("/antenna/trigger")
async def trigger_antenna(
    background_tasks: BackgroundTasks,
    authorization: str = Header(default=None),
):
    """Start one antenna run (called by the scheduler)."""
    if ANTENNA_SECRET_KEY and authorization != f"Bearer {ANTENNA_SECRET_KEY}":
        raise HTTPException(status_code=401, detail="Unauthorized")

    run_id = str(uuid.uuid4())
    await get_db()[RUNS_COLLECTION].insert_one({
        "run_id": run_id,
        "status": "running",
        "started_at": datetime.now(timezone.utc).isoformat(),
    })
    background_tasks.add_task(_run_antenna_task, run_id)
    return {"status": "triggered", "run_id": run_id}


# ---------------------------------------------------------------------------
# Status endpoints
# ---------------------------------------------------------------------------
@api_router.get("/antenna/runs")
async def get_antenna_runs():
    runs = await get_db()[RUNS_COLLECTION].find(
        {}, {"_id": 0}
    ).sort("started_at", -1).to_list(20)
    return {"runs": runs, "count": len(runs)}


@api_router.get("/antenna/updates")
async def get_recent_updates(limit: int = 50):
    limit = max(1, min(limit, MAX_LISTED_UPDATES))
    updates = await UpdateStore(get_db()[UPDATES_COLLECTION]).recent(limit)
    return {"updates": updates, "count": len(updates)}


@api_router.get("/")
async def root():
    return {
        "service": "Terminal Antenna",
        "status": "running",
        "endpoints": [
            "POST /api/antenna/trigger",
            "GET /api/antenna/runs",
            "GET /api/antenna/updates",
        ],
    }


app.include_router(api_router)
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH"], include_in_schema=False)
async def not_found(path: str):
    return PlainTextResponse("Not found", status_code=404)
