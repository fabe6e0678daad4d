from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse
import uvicorn

from .engine import RemoteCsvDisplayEngine
from .freshness import parse_cutoff
from .models import DEFAULT_CSV_URL, RemoteCsvInput, RemoteCsvOutput, UpdateInfo
from .security import FetchResponse, fetch_csv
from .stores import InMemoryOptionStore, InMemoryTtlCache, OptionStore, SqliteOptionStore
from .updater import check_for_update


VERSION = "1.1.0"
SERVICE_HOST = os.getenv("SERVICE_HOST", "0.0.0.0")
SERVICE_PORT = int(os.getenv("SERVICE_PORT", "8080"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "20"))
USER_AGENT = os.getenv("USER_AGENT", "remote-csv-display-v1/0.1")
MAX_CSV_BYTES = int(os.getenv("MAX_CSV_BYTES", str(10 * 1024 * 1024)))
RCD_TIMEZONE = os.getenv("RCD_TIMEZONE", "Asia/Jakarta")
RCD_REFRESH_CUTOFF = os.getenv("RCD_REFRESH_CUTOFF", "13:30")
RCD_MAX_ROWS = int(os.getenv("RCD_MAX_ROWS", "1500"))
RCD_OPTIONS_DB_PATH = (os.getenv("RCD_OPTIONS_DB_PATH") or "").strip()
RCD_UPDATE_MANIFEST_URL = os.getenv(
    "RCD_UPDATE_MANIFEST_URL",
    "https://raw.githubusercontent.com/muslimpribadi/remote-csv-display/refs/heads/main/update.json",
)
TEARDOWN_ON_SHUTDOWN = os.getenv("TEARDOWN_ON_SHUTDOWN", "false").lower() in {"1", "true", "yes", "on"}

logger = logging.getLogger("remote_csv_display_v1.api")


def _build_option_store() -> OptionStore:
    if RCD_OPTIONS_DB_PATH:
        return SqliteOptionStore(RCD_OPTIONS_DB_PATH)
    return InMemoryOptionStore()


async def _fetch(url: str, timeout_seconds: float) -> FetchResponse:
    return await fetch_csv(url, timeout_seconds=timeout_seconds, user_agent=USER_AGENT, max_csv_bytes=MAX_CSV_BYTES)


def build_engine() -> RemoteCsvDisplayEngine:
    return RemoteCsvDisplayEngine(
        cache=InMemoryTtlCache(),
        options=_build_option_store(),
        fetcher=_fetch,
        timeout_seconds=HTTP_TIMEOUT_SECONDS,
        cutoff=parse_cutoff(RCD_REFRESH_CUTOFF),
        timezone_name=RCD_TIMEZONE,
        max_rows=RCD_MAX_ROWS,
    )


engine = build_engine()


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    if TEARDOWN_ON_SHUTDOWN:
        engine.teardown()


app = FastAPI(title="remote_csv_display_v1", version=VERSION, lifespan=_lifespan)


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/run", response_model=RemoteCsvOutput)
async def run_remote_csv_display(payload: RemoteCsvInput) -> RemoteCsvOutput:
    return await engine.run(payload)


@app.get("/render", response_class=HTMLResponse)
async def render_remote_csv(
    url: str = Query(default=DEFAULT_CSV_URL),
    hide: str = Query(default=""),
    grouped_timeline: Optional[str] = Query(default=None, alias="grouped-timeline"),
) -> HTMLResponse:
    if not url.strip():
        url = DEFAULT_CSV_URL
    payload = RemoteCsvInput(url=url, hide=hide, grouped_timeline=grouped_timeline)
    output = await engine.run(payload)
    return HTMLResponse(content=output.html)


@app.get("/update-check", response_model=Optional[UpdateInfo])
async def update_check() -> Optional[UpdateInfo]:
    return await check_for_update(VERSION, RCD_UPDATE_MANIFEST_URL)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    uvicorn.run("remote_csv_display_v1.api:app", host=SERVICE_HOST, port=SERVICE_PORT, reload=False)


def teardown_main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    removed = engine.teardown()
    logger.info("teardown complete removed=%d", removed)


if __name__ == "__main__":
    main()
