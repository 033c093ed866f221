# matka/tasks/scheduler.py
import logging
from datetime import timedelta
from functools import partial

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import select, exists, and_

from matka.constants import BET_PENDING, RESULT_COMPLETED
from matka.core.config import settings
from matka.core.timeutil import now_local, day_window
from matka.db.session import AsyncSessionLocal
from matka.models.bet import Bet, StarlineBet
from matka.models.result import SessionResult, StarlineResult
from matka.tasks.dispatcher import dispatcher
from matka.tasks.settlement import settle_main_scope, finish_starline_result

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone=settings.TZ)


async def find_unsettled_scopes():
    """
    Scopes that already have a declared result but still hold pending bets
    (or a starline result that never reached "completed"),
    e.g. because rates were missing or a wallet credit failed.
    Returns (main [(game_id, game_date)], starline [result_id]).
    """
    since = now_local().date() - timedelta(days=settings.SETTLE_RETRY_LOOKBACK_DAYS)
    async with AsyncSessionLocal() as session:
        rs = await session.execute(
            select(Bet.game_id, Bet.game_date)
            .where(
                Bet.status == BET_PENDING,
                Bet.game_date >= since,
                exists().where(and_(
                    SessionResult.game_id == Bet.game_id,
                    SessionResult.game_date == Bet.game_date,
                )),
            )
            .distinct()
        )
        main_scopes = [(gid, d) for gid, d in rs.all()]

        rs = await session.execute(
            select(StarlineResult.id, StarlineResult.game_id, StarlineResult.game_date, StarlineResult.status)
            .where(StarlineResult.game_date >= since)
        )
        starline_ids = []
        for rid, gid, d, status in rs.all():
            # a pass that died after the result row committed never stored its aggregates
            if status != RESULT_COMPLETED:
                starline_ids.append(rid)
                continue
            start, end = day_window(d)
            pending = await session.scalar(
                select(StarlineBet.id).where(
                    StarlineBet.game_id == gid,
                    StarlineBet.bet_date >= start,
                    StarlineBet.bet_date < end,
                    StarlineBet.status == BET_PENDING,
                ).limit(1)
            )
            if pending is not None:
                starline_ids.append(rid)
    return main_scopes, starline_ids


async def retry_pending_job():
    """Re-run settlement for declared scopes that still have pending bets."""
    try:
        main_scopes, starline_ids = await find_unsettled_scopes()
        for game_id, game_date in main_scopes:
            summary = await dispatcher.submit(
                partial(settle_main_scope, game_id, game_date), label=f"retry:main:{game_id}:{game_date}",
            )
            if summary.processed:
                logger.info("retry settled main %s %s: %s", game_id, game_date, summary.as_dict())
        for result_id in starline_ids:
            summary = await dispatcher.submit(
                partial(finish_starline_result, result_id), label=f"retry:starline:{result_id}",
            )
            if summary.processed:
                logger.info("retry settled starline result %s: %s", result_id, summary.as_dict())
    except Exception as e:
        logger.exception("retry_pending_job failed: %s", e)


def start_scheduler():
    scheduler.add_job(
        retry_pending_job,
        "interval",
        seconds=settings.SETTLE_RETRY_SECONDS,
        id="retry_pending_settlement",
        replace_existing=True,
        coalesce=True,          # merge piled-up triggers
        max_instances=1,        # never two sweeps at once
        misfire_grace_time=30,
    )

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
