from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response
from fastapi.responses import PlainTextResponse

from s3_signer import __version__
from s3_signer.depends import Injected
from s3_signer.listing import list_directory
from s3_signer.models import (
    AbortOrCompleteUploadBody,
    CreateUploadResponse,
    ListedObject,
    PartUploadResponse,
)
from s3_signer.multipart import abort_or_complete, create_upload, part_upload_url
from s3_signer.responses import redirect
from s3_signer.signing import sign
from s3_signer.storage import ObjectRef, Operation, StorageBackend

router = APIRouter()
server_router = APIRouter(tags=["Server"])

Bucket = Annotated[str, Query(min_length=1, description="Name of the bucket")]


@server_router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return f"S3 Signer (version {__version__})\nAPI documentation on: /docs"


@server_router.get("/health")
async def health() -> Response:
    return Response(status_code=200)


def get_object_ref(
    bucket: Bucket,
    path: Annotated[str, Query(min_length=1, description="Key of the object")],
) -> ObjectRef:
    return ObjectRef(bucket=bucket, key=path)


Object = Annotated[ObjectRef, Depends(get_object_ref)]
UploadId = Annotated[str, Path(min_length=1, description="ID of the multipart upload")]


@router.get(
    "/object",
    tags=["Objects"],
    status_code=302,
    response_class=Response,
    responses={302: {"description": "Redirect to pre-signed URL for getting the object"}},
)
async def get_object(object: Object, fs: Injected[StorageBackend]) -> Response:
    return redirect(await sign(fs, Operation.GET, object))


@router.post(
    "/objects",
    tags=["Objects"],
    status_code=302,
    response_class=Response,
    responses={302: {"description": "Redirect to pre-signed URL for object creation"}},
)
async def create_object(object: Object, fs: Injected[StorageBackend]) -> Response:
    return redirect(await sign(fs, Operation.PUT, object))


@router.get("/objects", tags=["Objects"])
async def list_objects(
    bucket: Bucket,
    fs: Injected[StorageBackend],
    prefix: Annotated[str | None, Query(description="Prefix to list under, usually ending with '/'")] = None,
) -> list[ListedObject]:
    entries = await list_directory(fs, bucket, prefix)
    return [ListedObject(**asdict(entry)) for entry in entries]


@router.post("/multipart-upload", tags=["Multipart upload"])
async def create_multipart_upload(object: Object, fs: Injected[StorageBackend]) -> CreateUploadResponse:
    return CreateUploadResponse(upload_id=await create_upload(fs, object))


@router.get("/multipart-upload/{upload_id}/part/{part_number}", tags=["Multipart upload"])
async def get_part_upload_url(
    upload_id: UploadId,
    part_number: Annotated[int, Path(ge=1, description="Index number of the part to upload")],
    object: Object,
    fs: Injected[StorageBackend],
) -> PartUploadResponse:
    url = await part_upload_url(fs, object, upload_id, part_number)
    return PartUploadResponse(presigned_url=url)


@router.post(
    "/multipart-upload/{upload_id}",
    tags=["Multipart upload"],
    response_class=Response,
    responses={200: {"description": "Successfully aborted or completed multipart upload"}},
)
async def abort_or_complete_multipart_upload(
    upload_id: UploadId,
    object: Object,
    body: AbortOrCompleteUploadBody,
    fs: Injected[StorageBackend],
) -> Response:
    await abort_or_complete(fs, object, upload_id, body)
    return Response(status_code=200)
