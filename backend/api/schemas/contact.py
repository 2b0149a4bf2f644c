"""
Contact form schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ContactRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    subject: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = Field(None, max_length=10000)


class ContactResponse(BaseModel):
    success: bool
    recipient: str
