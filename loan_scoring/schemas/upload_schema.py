from pydantic import BaseModel, ConfigDict, Field


class UploadDescriptor(BaseModel):
    """File descriptor the client sends before uploading a document."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="Original file name")
    size: int = Field(..., gt=0, description="File size in bytes")
    content_type: str = Field(..., alias="contentType", min_length=1, description="MIME type of the file")


class UploadTarget(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    upload_url: str = Field(..., alias="uploadURL", description="Signed URL the client PUTs the file to")
    object_path: str = Field(..., alias="objectPath", description="Opaque reference stored as the document fileUrl")
