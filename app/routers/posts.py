from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from app.errors import DatabaseError, InvalidUpload
from app.schemas.post import PostSubmission, PostSubmitResponse, UploadRecord
from app.services.mongo_service import MongoService
from app.services.s3_service import S3Service
import structlog

logger = structlog.get_logger()
router = APIRouter(prefix="/admin", tags=["posts"])


def get_s3_service(request: Request) -> S3Service:
    return S3Service(request.app.state.settings, request.app.state.s3_client)


def get_mongo_service(request: Request) -> MongoService:
    return MongoService(request.app.state.settings, request.app.state.mongo_client)


async def parse_submission(request: Request) -> PostSubmission:
    """
    Read name, email and the picture file out of the multipart form.

    Raises:
        InvalidUpload: If the body is not a usable multipart form or has no file
    """
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as e:
        logger.warning("Malformed multipart body", error=str(e))
        raise InvalidUpload() from e

    picture = form.get("picture")
    if not isinstance(picture, UploadFile) or not picture.filename:
        logger.warning("Submission without picture file")
        raise InvalidUpload()

    return PostSubmission(
        name=_text_field(form.get("name")),
        email=_text_field(form.get("email")),
        picture=picture
    )


def _text_field(value) -> str:
    # A file part sent under a text field name counts as absent
    return value if isinstance(value, str) else ""


@router.post("/post-submit", response_model=PostSubmitResponse)
def submit_post(
    submission: PostSubmission = Depends(parse_submission),
    s3_service: S3Service = Depends(get_s3_service),
    mongo_service: MongoService = Depends(get_mongo_service)
):
    """
    Store the uploaded picture in S3, then record it in MongoDB.

    There is no transaction across the two stores. If the insert fails the
    S3 object stays where it is, orphaned.
    """
    picture = submission.picture
    try:
        picture_url = s3_service.store(picture.file, picture.filename)
    finally:
        picture.file.close()

    record = UploadRecord(
        name=submission.name,
        email=submission.email,
        pictureUrl=picture_url,
        createdAt=datetime.now(timezone.utc)
    )
    try:
        mongo_service.insert(record)
    except DatabaseError:
        logger.warning("orphaned_object", picture_url=picture_url)
        raise

    logger.info("Form submitted", email=submission.email, picture_url=picture_url)
    return PostSubmitResponse(message="Form submitted successfully")


@router.get("/posts", response_model=List[Dict[str, Any]])
def list_posts(mongo_service: MongoService = Depends(get_mongo_service)):
    """Return every stored record, unpaginated."""
    return mongo_service.find_all()
