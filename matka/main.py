# matka/main.py
import logging, sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matka.core.config import settings
from matka.db.session import engine, Base
from matka.models import bet, game, rate, result, user, wallet  # noqa: F401  register tables

from matka.routers.results import router as results_router
from matka.routers.bets import router as bets_router, starline_router
from matka.routers.rates import router as rates_router

from matka.tasks.dispatcher import dispatcher
from matka.tasks.scheduler import start_scheduler, stop_scheduler

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("uvicorn").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)

logging.getLogger("apscheduler").setLevel(logging.ERROR)

# settlement lines are the audit trail
logging.getLogger("matka.tasks.settlement").setLevel(logging.INFO)
logging.getLogger("matka.services.result_service").setLevel(logging.INFO)

app.include_router(results_router)
app.include_router(bets_router)
app.include_router(starline_router)
app.include_router(rates_router)


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.on_event("startup")
async def on_startup() -> None:
    await init_db()
    dispatcher.start()
    start_scheduler()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    stop_scheduler()
    await dispatcher.stop()


@app.get("/ping")
async def ping():
    return {"ok": True, "env": settings.APP_ENV}


@app.get("/healthz")
async def healthz():
    return {"status": "healthy", "settlement_worker": dispatcher.running}
