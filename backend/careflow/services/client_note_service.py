"""
Client note service with business logic.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.exceptions import AuthorizationError, NotFoundError
from careflow.db.repositories.client_note_repository import ClientNoteRepository
from careflow.db.repositories.client_repository import ClientRepository
from careflow.models.client_note import ClientNote
from careflow.models.user import User
from careflow.schemas.client_note import ClientNoteCreate, ClientNoteResponse, ClientNoteUpdate
from careflow.services.base_service import BaseService

logger = logging.getLogger(__name__)


class ClientNoteService(BaseService):
    """Service for notes attached to a client."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.note_repo = ClientNoteRepository(session)
        self.client_repo = ClientRepository(session)

    async def _check_client(self, client_id: UUID, actor: User) -> None:
        if not await self.client_repo.get_for_org(client_id, actor.organization_id):
            raise NotFoundError("Client", client_id)

    async def _get_own_note(self, client_id: UUID, note_id: UUID, actor: User) -> ClientNote:
        note = await self.note_repo.get(note_id)
        if not note or note.client_id != client_id or note.organization_id != actor.organization_id:
            raise NotFoundError("Note", note_id)
        if note.user_id != actor.id:
            raise AuthorizationError("Only the author can change this note")
        return note

    async def add_note(self, client_id: UUID, note_data: ClientNoteCreate, actor: User) -> ClientNoteResponse:
        """Attach a note to a client."""
        await self._check_client(client_id, actor)
        note = await self.note_repo.create(
            organization_id=actor.organization_id,
            client_id=client_id,
            user_id=actor.id,
            content=note_data.content,
        )
        await self.session.commit()
        return ClientNoteResponse.model_validate(await self.note_repo.get(note.id))

    async def list_notes(self, client_id: UUID, actor: User) -> List[ClientNoteResponse]:
        """List a client's notes, newest first."""
        await self._check_client(client_id, actor)
        notes = await self.note_repo.list_by_client(client_id)
        return [ClientNoteResponse.model_validate(n) for n in notes]

    async def update_note(
        self,
        client_id: UUID,
        note_id: UUID,
        note_data: ClientNoteUpdate,
        actor: User,
    ) -> ClientNoteResponse:
        """Edit one of the caller's own notes."""
        note = await self._get_own_note(client_id, note_id, actor)
        note.content = note_data.content
        await self.session.commit()
        return ClientNoteResponse.model_validate(note)

    async def delete_note(self, client_id: UUID, note_id: UUID, actor: User) -> bool:
        """Delete one of the caller's own notes."""
        note = await self._get_own_note(client_id, note_id, actor)
        deleted = await self.note_repo.delete(note.id)
        await self.session.commit()
        logger.info("Client note deleted", extra={"note_id": str(note_id)})
        return deleted
