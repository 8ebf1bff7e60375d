"""Schemas for the upload endpoints."""

from pydantic import BaseModel, Field


class UploadedFileOut(BaseModel):
    """One stored file."""

    new_file_name: str = Field(..., description="Name on disk inside the upload directory.")
    original_file_name: str = Field(..., description="File name sent by the client (last path component).")
    file_size: int = Field(..., description="Bytes written.")


class UploadResponse(BaseModel):
    """Response after storing every file part of the request."""

    files_saved: int = Field(..., description="Number of files successfully saved.")
    files: list[UploadedFileOut] = Field(..., description="Stored files in form order.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "files_saved": 1,
                    "files": [
                        {
                            "new_file_name": "Xq3_vB+0aLkT9zPw2mNc8rYe1.png",
                            "original_file_name": "img.png",
                            "file_size": 2048,
                        }
                    ],
                }
            ]
        }
    }
