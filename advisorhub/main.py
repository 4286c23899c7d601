import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .core.config import get_settings
from .core.logging import configure_logging
from .db.session import AsyncSessionLocal, async_engine
from .features.attachments.pipeline import reconcile_stale_attachments
from .features.jobs import get_job_runner

settings = get_settings()
logger = logging.getLogger(__name__)


async def _stale_attachment_sweeper_loop() -> None:
    while True:
        try:
            async with AsyncSessionLocal() as session:
                await reconcile_stale_attachments(session)
        except Exception:
            logger.exception("Stale attachment sweep failed.")
        interval = max(1, settings.stale_attachment_sweep_interval_seconds)
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    sweeper_task: asyncio.Task[None] | None = None
    if settings.stale_attachment_sweep_enabled:
        sweeper_task = asyncio.create_task(_stale_attachment_sweeper_loop())
    try:
        yield
    finally:
        if sweeper_task is not None:
            sweeper_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper_task
        await get_job_runner().shutdown()
        await async_engine.dispose()


app = FastAPI(title="AdvisorHub API", docs_url="/api/docs", lifespan=lifespan)
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def read_root() -> dict:
    return {"status": "ok", "service": "advisorhub"}


@app.get("/health")
async def health_check() -> dict:
    return {"healthy": True}
