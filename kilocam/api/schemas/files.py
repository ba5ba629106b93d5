"""
API Schemas for the Files Domain (gallery browser and downloads).
"""

from typing import List, Optional
from pydantic import BaseModel
from kilocam.api.schemas.base import BaseResponse


class EntrySchema(BaseModel):
    name: str
    is_dir: bool
    size: int
    size_label: str
    path: str


class ListingResponse(BaseResponse):
    path: str
    can_go_up: bool
    stale: bool = False
    entries: List[EntrySchema]


class NavigateRequest(BaseModel):
    path: str = "/"


class OpenRequest(BaseModel):
    name: str


class DeleteRequest(BaseModel):
    path: str
    is_dir: bool = False
    confirmed: bool = False


class DownloadAllRequest(BaseModel):
    path: str
    confirmed: bool = False


class DownloadJobSchema(BaseModel):
    id: str
    path: str
    total: int
    completed: int
    failed: int
    remaining: int
    discarded: bool


class DownloadJobResponse(BaseResponse):
    job: Optional[DownloadJobSchema] = None
    destination: Optional[str] = None


class DownloadJobsResponse(BaseResponse):
    jobs: List[DownloadJobSchema]
