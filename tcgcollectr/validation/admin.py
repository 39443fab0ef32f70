"""
管理员接口查询参数
"""
from typing import Literal, Optional

from pydantic import Field

from tcgcollectr.validation import RequestModel


class ImportJobQuery(RequestModel):
    """GET /admin/import-jobs"""
    page: int = Field(1, ge=1)
    page_size: int = Field(20, alias='pageSize', ge=1, le=100)
    status: Optional[Literal['pending', 'running', 'completed', 'failed']] = None
    job_type: Optional[str] = Field(None, alias='jobType', max_length=50)


class LatestImportJobQuery(RequestModel):
    """GET /admin/import-jobs/latest"""
    job_type: Optional[str] = Field(None, alias='jobType', max_length=50)
