import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from file_cloud.config import Settings
from file_cloud.utils import logging

REALM = "File Cloud"

logger = logging.get_logger(__name__)

security = HTTPBasic(realm=REALM, auto_error=False)


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def require_basic_auth(request: Request, credentials: HTTPBasicCredentials | None = Depends(security)) -> None:
    """Gate a route behind basic auth when a username and password are configured."""
    settings: Settings = request.app.state.settings
    if not settings.auth_enabled:
        return

    if credentials is None:
        logger.debug("Couldn't parse basic auth")
    else:
        user_ok = _matches(credentials.username, settings.user)
        pass_ok = _matches(credentials.password, settings.password)
        if user_ok and pass_ok:
            return
        logger.warning("Incorrect authentication provided")

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": f'Basic realm="{REALM}", charset="UTF-8"'},
    )
