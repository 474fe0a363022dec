"""
Revocation store: one currently-valid refresh token per identity, kept in
users.refresh_token.

Rotation is a compare-and-swap done by a single conditional UPDATE, so two
requests presenting the same refresh token cannot both rotate it: the
database serializes the writes and the loser matches zero rows.
"""
from __future__ import annotations

import logging

from sqlalchemy import exists, select, update
from sqlalchemy.exc import SQLAlchemyError

from models.db_storage import DBStorage
from models.schemas.identity import Identity
from models.user import User
from utils.errors import BackendFailure, IdentityNotFound, RotationConflict

logger = logging.getLogger(__name__)


class RevocationStore:

    def __init__(self, storage: DBStorage):
        self.storage = storage

    def _execute_update(self, statement, action: str) -> int:
        """Run an UPDATE and commit it; returns the number of rows matched."""
        session = self.storage.get_session()
        try:
            result = session.execute(statement.execution_options(synchronize_session=False))
            matched = result.rowcount
            if matched:
                session.commit()
            else:
                session.rollback()
            return matched
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("revocation store failed while %s", action)
            raise BackendFailure(f"{action}: {exc}") from exc

    def set_token(self, identity: Identity, token: str) -> None:
        """Unconditionally replace the refresh token of an identity (login)."""
        statement = (
            update(User)
            .where(User.id == identity.id)
            .values(refresh_token=token)
        )
        if not self._execute_update(statement, f"setting refresh token for {identity.id}"):
            raise IdentityNotFound(f"identity {identity.id} does not exist")

    def rotate_token(self, identity: Identity, old_token: str, new_token: str) -> None:
        """
        Replace old_token with new_token only if old_token is still the stored
        value. Raises RotationConflict otherwise and leaves the record as is.
        """
        statement = (
            update(User)
            .where(User.id == identity.id, User.refresh_token == old_token)
            .values(refresh_token=new_token)
        )
        if not self._execute_update(statement, f"rotating refresh token for {identity.id}"):
            logger.info("refresh token rotation conflict for identity %s", identity.id)
            raise RotationConflict(f"refresh token for {identity.id} already rotated")

    def revoke_token(self, identity: Identity, token: str) -> bool:
        """Clear the stored refresh token if it is still `token`."""
        statement = (
            update(User)
            .where(User.id == identity.id, User.refresh_token == token)
            .values(refresh_token=None)
        )
        return bool(self._execute_update(statement, f"revoking refresh token for {identity.id}"))

    def exists(self, token: str) -> bool:
        """True if `token` is the current refresh token of some identity."""
        session = self.storage.get_session()
        try:
            found = session.scalar(select(exists().where(User.refresh_token == token)))
            # release the read so a following UPDATE starts a fresh transaction
            session.commit()
            return bool(found)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("revocation store failed while checking a refresh token")
            raise BackendFailure(f"checking refresh token: {exc}") from exc
