"""
API schemas for stored files.
"""
from pydantic import BaseModel, ConfigDict, Field


class FileResponse(BaseModel):
    """A stored file as returned by the API."""
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "id": "3f2b8c1e-4a5d-4e6f-9a7b-8c9d0e1f2a3b",
                    "filename": "hello.txt",
                    "url": "http://localhost:8080/files/3f2b8c1e-4a5d-4e6f-9a7b-8c9d0e1f2a3b__hello.txt",
                }
            ]
        }
    )

    id: str = Field(..., description="Unique file identifier")
    filename: str = Field(..., description="Original filename")
    url: str = Field(..., description="Retrieval URL")


class ErrorResponse(BaseModel):
    """Standardized error response format."""
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"error": "file not found"}]}
    )

    error: str = Field(..., description="Error message")
