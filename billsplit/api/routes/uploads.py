"""Image upload and download routes."""

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from billsplit.schemas.upload import UploadResponse
from billsplit.services.uploads import resolve_image, save_image

router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=UploadResponse)
async def upload_image(image: UploadFile | None = File(None)) -> UploadResponse:
    """Store a JPEG or PNG photo of a meter or bill (5MB max)."""
    stored = await save_image(image)
    return UploadResponse(
        url=stored.url,
        filename=stored.filename,
        originalname=stored.originalname,
        size=stored.size,
    )


@router.get("/images/{filename}")
def get_image(filename: str) -> FileResponse:
    """Serve a previously uploaded image."""
    path = resolve_image(filename)
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return FileResponse(path)
