"""Request and response models for the user API."""
from typing import Optional, Dict, Any

from pydantic import BaseModel


class UserRecord(BaseModel):
    """
    A user as echoed back by a write (POST/PUT).

    Writes may answer with a partial resource, so only ``name`` is required.
    Fields the API returns beyond these are ignored.
    """
    name: str
    id: Optional[int] = None
    email: Optional[str] = None
    username: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    company: Optional[Dict[str, Any]] = None


class UserModel(UserRecord):
    """A user resource as returned by a read."""
    id: int
    email: str


class UserPayload(BaseModel):
    """Body sent when creating or updating a user."""
    name: str
    email: Optional[str] = None
    username: Optional[str] = None
