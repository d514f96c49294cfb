from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from starlette.datastructures import UploadFile


class UploadRecord(BaseModel):
    name: str
    email: str
    pictureUrl: str
    createdAt: datetime

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()


class PostSubmitResponse(BaseModel):
    message: str


class PostSubmission(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = ""
    email: str = ""
    picture: UploadFile
