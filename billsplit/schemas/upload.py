"""Upload response schemas."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Schema for a stored image."""

    url: str
    filename: str
    originalname: str
    size: int
