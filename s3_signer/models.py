"""Request and response bodies of the HTTP API, shared by the server and the client."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, RootModel

from s3_signer.storage import CompletedPart


class ListedObject(BaseModel):
    path: str
    is_dir: bool


class CreateUploadResponse(BaseModel):
    upload_id: str


class PartUploadResponse(BaseModel):
    presigned_url: str


class CompletedUploadPart(BaseModel):
    number: int = Field(ge=1)
    etag: str

    def to_part(self) -> CompletedPart:
        return CompletedPart(number=self.number, etag=self.etag)


class AbortUpload(BaseModel):
    action: Literal["Abort"] = "Abort"


class CompleteUpload(BaseModel):
    action: Literal["Complete"] = "Complete"
    parts: list[CompletedUploadPart]


class AbortOrCompleteUploadBody(
    RootModel[Annotated[Union[AbortUpload, CompleteUpload], Field(discriminator="action")]]
):
    pass
