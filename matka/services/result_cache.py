# matka/services/result_cache.py
import json
import logging

from matka.constants import k_history, k_last_result
from matka.core.config import settings
from matka.db.redis import r

logger = logging.getLogger(__name__)


async def push_result(family: str, game_id: int, item: dict) -> None:
    """
    Newest-first history plus last-result key for one game.
    The database stays authoritative, so failures are logged and swallowed here.
    """
    h_key = k_history(family, game_id)
    lr_key = k_last_result(family, game_id)
    # sort_keys so equal results serialise identically and LREM can match them
    payload = json.dumps(item, ensure_ascii=False, sort_keys=True, default=str)
    try:
        existing = await r.lrange(h_key, 0, settings.RESULT_HISTORY_LIMIT - 1)
        pipe = r.pipeline()
        for raw in existing or []:
            try:
                old = json.loads(raw)
            except ValueError:
                continue
            # a redeclared main session replaces its previous entry
            if old.get("game_date") == item.get("game_date") and old.get("session") == item.get("session"):
                pipe.lrem(h_key, 0, raw)
        pipe.lpush(h_key, payload)
        pipe.ltrim(h_key, 0, settings.RESULT_HISTORY_LIMIT - 1)
        pipe.set(lr_key, payload)
        await pipe.execute()
    except Exception as e:
        logger.exception("[result_cache] push failed %s/%s: %s", family, game_id, e)


async def last_result(family: str, game_id: int) -> dict:
    lr = await r.get(k_last_result(family, game_id))
    if not lr:
        return {}
    try:
        return json.loads(lr)
    except ValueError:
        return {"raw": lr}


async def history(family: str, game_id: int, limit: int = 30) -> list[dict]:
    raw = await r.lrange(k_history(family, game_id), 0, limit - 1)
    items = []
    for s in raw:
        try:
            items.append(json.loads(s))
        except ValueError:
            continue
    return items
