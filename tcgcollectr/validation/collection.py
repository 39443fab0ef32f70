"""
收藏请求校验
"""
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator

from tcgcollectr.validation import RequestModel

MAX_QUANTITY = 9999


def _check_quantity(v):
    if v is None:
        return v
    if v <= 0:
        raise ValueError('quantity must be greater than 0')
    if v > MAX_QUANTITY:
        raise ValueError(f'quantity must not exceed {MAX_QUANTITY}')
    return v


def _round_grade(v):
    # 与 NUMERIC(3, 1) 列的精度一致
    return round(v, 1) if v is not None else v


def _check_notes(v):
    if v is None:
        return v
    v = v.strip()
    if len(v) > 500:
        raise ValueError('notes must not exceed 500 characters')
    return v or None


class AddCollectionEntryBody(RequestModel):
    """POST /collection"""
    card_id: str = Field(alias='cardId', min_length=1, max_length=36)
    quantity: int = 1
    condition_id: int = Field(alias='conditionId', ge=1)
    grading_company_id: Optional[int] = Field(None, alias='gradingCompanyId', ge=1)
    grade_value: Optional[float] = Field(None, alias='gradeValue', validate_default=True)
    purchase_price: Optional[float] = Field(None, alias='purchasePrice', ge=0, le=10_000_000)
    notes: Optional[str] = None

    @field_validator('quantity')
    @classmethod
    def check_quantity(cls, v):
        return _check_quantity(v)

    @field_validator('grade_value')
    @classmethod
    def grade_needs_company(cls, v, info: ValidationInfo):
        company = info.data.get('grading_company_id')
        if v is not None and company is None:
            raise ValueError('gradeValue requires gradingCompanyId')
        if v is None and company is not None:
            raise ValueError('gradeValue is required when gradingCompanyId is set')
        return _round_grade(v)

    @field_validator('notes')
    @classmethod
    def check_notes(cls, v):
        return _check_notes(v)


class UpdateCollectionEntryBody(RequestModel):
    """
    PATCH /collection/<id>

    只更新请求中出现的字段；gradingCompanyId 传 null 时同时清除 gradeValue，
    评分与评级公司的组合规则在合并现有记录后由服务层检查
    """
    quantity: Optional[int] = None
    condition_id: Optional[int] = Field(None, alias='conditionId', ge=1)
    grading_company_id: Optional[int] = Field(None, alias='gradingCompanyId', ge=1)
    grade_value: Optional[float] = Field(None, alias='gradeValue')
    purchase_price: Optional[float] = Field(None, alias='purchasePrice', ge=0, le=10_000_000)
    notes: Optional[str] = None

    @field_validator('quantity')
    @classmethod
    def check_quantity(cls, v):
        if v is None:
            raise ValueError('quantity must be greater than 0')
        return _check_quantity(v)

    @field_validator('condition_id')
    @classmethod
    def condition_not_null(cls, v):
        if v is None:
            raise ValueError('conditionId must not be null')
        return v

    @field_validator('grade_value')
    @classmethod
    def round_grade(cls, v):
        return _round_grade(v)

    @field_validator('notes')
    @classmethod
    def check_notes(cls, v):
        return _check_notes(v)

    @model_validator(mode='after')
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError('At least one field must be provided')
        return self


class CollectionQuery(RequestModel):
    """GET /collection"""
    page: int = Field(1, ge=1)
    page_size: int = Field(20, alias='pageSize', ge=1, le=100)
    sort: Literal['created_at', 'name', 'number', 'price'] = 'created_at'
    order: Literal['asc', 'desc'] = 'desc'
    set_id: Optional[str] = Field(None, alias='setId', max_length=36)
    condition_id: Optional[int] = Field(None, alias='conditionId', ge=1)
    list_id: Optional[str] = Field(None, alias='listId', max_length=36)
    search: Optional[str] = Field(None, max_length=100)

    @field_validator('search')
    @classmethod
    def strip_search(cls, v):
        return v.strip() if v else v
