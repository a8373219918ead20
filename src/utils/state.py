from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import db.crud as crud
from db.models import Session
from utils import config
from utils.errors import AuthError, DataAccessError
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class AppState:
    """
    Application state shared by screens.

    Fields:
      - session: the signed-in account's Session, or None
      - email: email of the signed-in account
      - buyer: this client's anonymous buyer Session, used for checkout and
        the purchase throttle. Its token lives in client_file, so the same
        identity comes back after a restart and is untouched by admin
        sign-in and sign-out.
      - client_file: where the buyer token is kept
    """

    session: Optional[Session] = None
    email: Optional[str] = None
    buyer: Optional[Session] = None
    client_file: str = field(default_factory=lambda: config.CLIENT_FILE)

    @property
    def uid(self) -> Optional[int]:
        return self.session.uid if self.session else None

    def _read_client_token(self) -> Optional[str]:
        if not os.path.exists(self.client_file):
            return None
        with open(self.client_file, "r", encoding="utf-8") as f:
            return f.read().strip() or None

    def _save_client_token(self, token: str) -> None:
        os.makedirs(os.path.dirname(self.client_file) or ".", exist_ok=True)
        with open(self.client_file, "w", encoding="utf-8") as f:
            f.write(token)

    async def resume_buyer(self) -> Optional[Session]:
        """Return this client's buyer identity if it already has one."""
        if self.buyer is None:
            try:
                token = self._read_client_token()
            except OSError as e:
                raise DataAccessError(f"Cannot read client file: {e}") from e
            if token:
                self.buyer = await crud.get_session(token)
        return self.buyer

    async def ensure_buyer(self, when: Optional[datetime] = None) -> Session:
        """Return this client's buyer identity, creating and saving one if needed."""
        if await self.resume_buyer() is None:
            buyer = await crud.sign_in_anonymously(when)
            try:
                self._save_client_token(buyer.token)
            except OSError as e:
                raise DataAccessError(f"Cannot write client file: {e}") from e
            self.buyer = buyer
            _logger.info(f"Buyer identity {buyer.uid} saved for this client")
        return self.buyer

    async def sign_in(self, email: str, pwd: str, when: Optional[datetime] = None) -> Session:
        """Replace the signed-in session with a new one. The buyer identity is kept."""
        session = await crud.sign_in(email, pwd, when)
        if session is None:
            raise AuthError("Invalid email or password.", reason="bad_credentials")
        if self.session is not None:
            await self.sign_out(when)
        self.session = session
        self.email = email.strip().lower()
        return session

    async def sign_out(self, when: Optional[datetime] = None) -> None:
        """
        End the signed-in session if one exists; the buyer identity stays.
        Local state is cleared even if the store cannot be reached.
        """
        session, self.session, self.email = self.session, None, None
        if session is None:
            return
        try:
            await crud.sign_out(session.token, when)
        except DataAccessError:
            _logger.warning(f"Could not end session of user {session.uid} in the store")
        else:
            _logger.info(f"User {session.uid} signed out")

    async def require_admin(self) -> Session:
        """
        Gate for every admin view and admin operation.
        Raises AuthError when there is no session; signs out and raises when
        the session has ended or carries no admin grant.
        """
        if self.session is None:
            raise AuthError("Please sign in to continue.", reason="no_session")

        try:
            active = await crud.get_session(self.session.token)
            grant = await crud.get_role_grant(self.session.uid, "admin") if active else None
        except DataAccessError:
            grant = None

        if grant is None:
            _logger.warning(f"Admin access denied for user {self.session.uid}")
            await self.sign_out()
            raise AuthError("Access denied. Admin privileges required.", reason="access_denied")
        return self.session
