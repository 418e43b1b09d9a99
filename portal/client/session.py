"""
Client session: the logged-in user and token, persisted between runs, with
an inactivity timeout that is reset by user input.
"""
import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from portal.core.config import settings
from portal.schemas.auth import LoginData, UserResponse

logger = logging.getLogger(__name__)

ExpireCallback = Callable[[], Union[None, Awaitable[None]]]


class SessionManager:
    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        idle_minutes: Optional[int] = None,
        clock: Callable[[], float] = time.time,
        on_expire: Optional[ExpireCallback] = None,
    ):
        self.path = Path(path) if path else None
        self.idle_seconds = (idle_minutes or settings.session_idle_minutes) * 60
        self.clock = clock
        self.on_expire = on_expire
        self.access_token: Optional[str] = None
        self.current_user: Optional[UserResponse] = None
        self.last_activity: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.access_token is not None

    @property
    def expires_at(self) -> Optional[float]:
        if not self.active or self.last_activity is None:
            return None
        return self.last_activity + self.idle_seconds

    def start(self, login: LoginData) -> None:
        self.access_token = login.session.access_token
        self.current_user = login.user
        self.touch()
        self._persist()

    def restore(self) -> bool:
        """Reload a persisted session; the inactivity timer starts afresh."""
        if not self.path or not self.path.is_file():
            return False
        try:
            stored = json.loads(self.path.read_text())
            self.access_token = stored["access_token"]
            self.current_user = UserResponse.model_validate(stored["user"])
        except (OSError, ValueError, KeyError) as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {e}")
            self.end()
            return False
        self.touch()
        return True

    def touch(self) -> None:
        """Record user input (click, keypress) and push the timeout back."""
        if self.active:
            self.last_activity = self.clock()

    def is_expired(self) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and self.clock() >= expires_at

    def check(self) -> bool:
        """End the session if it has been idle too long. Returns True when it did."""
        if not self.is_expired():
            return False
        logger.info("Session expired after inactivity")
        self.end()
        return True

    def end(self) -> None:
        self.access_token = None
        self.current_user = None
        self.last_activity = None
        if self.path:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass

    async def watch(self) -> None:
        """Sleep until the session could expire, re-checking after every touch."""
        while self.active:
            remaining = (self.expires_at or 0) - self.clock()
            if remaining > 0:
                await asyncio.sleep(remaining)
                continue
            if self.check() and self.on_expire is not None:
                result = self.on_expire()
                if asyncio.iscoroutine(result):
                    await result

    def _persist(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({
            "access_token": self.access_token,
            "user": self.current_user.model_dump(mode="json") if self.current_user else None,
        }))
