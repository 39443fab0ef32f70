"""
卡片目录查询参数
"""
import re
import uuid
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator

from tcgcollectr.utils.numbers import normalize_card_number
from tcgcollectr.validation import RequestModel

# 宝可梦卡牌属性
VALID_POKEMON_TYPES = (
    'fire', 'water', 'grass', 'lightning', 'psychic', 'fighting',
    'darkness', 'metal', 'fairy', 'dragon', 'colorless', 'unknown',
)

SET_ID_PATTERN = re.compile(r'^[A-Za-z0-9._-]+$')


def _check_uuid(value, name):
    try:
        return str(uuid.UUID(value))
    except ValueError:
        raise ValueError(f'{name} must be a valid UUID')


class CardSearchQuery(RequestModel):
    """GET /cards"""
    q: Optional[str] = Field(None, max_length=100)
    set_id: Optional[str] = Field(None, alias='setId')
    set_external_id: Optional[str] = Field(None, alias='setExternalId', max_length=50)
    card_number: Optional[str] = Field(None, alias='cardNumber', max_length=20)
    rarity_id: Optional[int] = Field(None, alias='rarityId', ge=1)
    type: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(24, alias='pageSize', ge=1, le=100)
    sort: Literal['set', 'name', 'number'] = 'name'
    order: Literal['asc', 'desc'] = 'asc'

    @field_validator('q')
    @classmethod
    def check_q(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError('q must be at least 2 characters')
        return v

    @field_validator('set_id')
    @classmethod
    def check_set_id(cls, v):
        return None if v is None else _check_uuid(v.strip(), 'setId')

    @field_validator('set_external_id')
    @classmethod
    def check_set_external_id(cls, v, info: ValidationInfo):
        if v is None:
            return v
        if info.data.get('set_id') is not None:
            raise ValueError('Provide either setId or setExternalId, not both')
        return v.strip()

    @field_validator('card_number')
    @classmethod
    def check_card_number(cls, v):
        return normalize_card_number(v)

    @field_validator('type')
    @classmethod
    def check_type(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if v not in VALID_POKEMON_TYPES:
            raise ValueError(f"type must be one of: {', '.join(VALID_POKEMON_TYPES)}")
        return v


class SetListQuery(RequestModel):
    """GET /sets"""
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)
    sort: Literal['name', 'release_date', 'series'] = 'name'
    order: Literal['asc', 'desc'] = 'asc'
    search: Optional[str] = Field(None, max_length=100)
    series: Optional[str] = Field(None, max_length=100)

    @field_validator('search', 'series')
    @classmethod
    def not_empty(cls, v, info: ValidationInfo):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError(f'{info.field_name} must not be empty')
        return v


class SetPathParams(RequestModel):
    """GET /sets/<setId>"""
    set_id: str = Field(alias='setId', max_length=50)

    @field_validator('set_id')
    @classmethod
    def check_format(cls, v):
        if not v:
            raise ValueError('setId must not be empty')
        if not SET_ID_PATTERN.match(v):
            raise ValueError('setId format is invalid')
        return v


class RarityQuery(RequestModel):
    """GET /rarities"""
    tcg_type_id: Optional[int] = Field(None, alias='tcgTypeId', ge=1)
