"""
自定义列表请求校验
"""
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from tcgcollectr.validation import RequestModel


def _check_name(v):
    v = v.strip()
    if not v:
        raise ValueError('name must not be empty')
    if len(v) > 50:
        raise ValueError('name must not exceed 50 characters')
    return v


class CreateListBody(RequestModel):
    """POST /lists"""
    name: str

    @field_validator('name')
    @classmethod
    def check_name(cls, v):
        return _check_name(v)


class UpdateListBody(RequestModel):
    """PATCH /lists/<id>"""
    name: Optional[str] = None
    sort_order: Optional[int] = Field(None, alias='sortOrder', ge=0)

    @field_validator('name')
    @classmethod
    def check_name(cls, v):
        if v is None:
            raise ValueError('name must not be empty')
        return _check_name(v)

    @model_validator(mode='after')
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError('At least one of name or sortOrder must be provided')
        return self


class AddListEntriesBody(RequestModel):
    """POST /lists/<id>/entries"""
    entry_ids: List[str] = Field(alias='entryIds', min_length=1, max_length=100)

    @field_validator('entry_ids')
    @classmethod
    def dedupe(cls, v):
        # 保持原有顺序去重
        return list(dict.fromkeys(item.strip() for item in v if item.strip()))


class ListDetailQuery(RequestModel):
    """GET /lists/<id>"""
    page: int = Field(1, ge=1)
    page_size: int = Field(20, alias='pageSize', ge=1, le=100)
