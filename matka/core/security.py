
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt

from matka.core.config import settings

def create_access_token(subject: str | int, expires_minutes: Optional[int] = None) -> str:
    # tokens are normally minted by the account service; kept here for tooling and tests
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload = {
        "sub": str(subject),
        "exp": int(expire.timestamp()),
        "iat": int(datetime.now(timezone.utc).timestamp()),
        "iss": settings.APP_NAME,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")

def decode_access_token(token: str) -> int:
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"], options={"require": ["exp", "iat", "sub"]})
    sub = payload.get("sub")
    if not sub:
        raise ValueError("no sub")
    return int(sub)
