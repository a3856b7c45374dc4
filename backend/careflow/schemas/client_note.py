"""
Client note Pydantic schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class NoteAuthor(BaseModel):
    """Embedded author info."""
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class ClientNoteCreate(BaseModel):
    """Schema for creating a note."""
    content: str = Field(..., min_length=1)


class ClientNoteUpdate(BaseModel):
    """Schema for editing a note."""
    content: str = Field(..., min_length=1)


class ClientNoteResponse(BaseModel):
    """Schema for note response."""
    id: UUID
    client_id: UUID
    user_id: Optional[UUID] = None
    content: str
    user: Optional[NoteAuthor] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
