"""
用户资料请求体校验
"""
from typing import Optional

from pydantic import Field, field_validator, model_validator

from tcgcollectr.validation import RequestModel


class UpdateProfileBody(RequestModel):
    """PATCH /profile"""
    display_name: Optional[str] = Field(None, alias='displayName')
    avatar_url: Optional[str] = Field(None, alias='avatarUrl', max_length=500)

    @field_validator('display_name')
    @classmethod
    def check_display_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('displayName must not be empty')
        if len(v) > 100:
            raise ValueError('displayName must not exceed 100 characters')
        return v

    @field_validator('avatar_url')
    @classmethod
    def check_avatar_url(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            raise ValueError('avatarUrl must be an http(s) URL')
        return v

    @model_validator(mode='after')
    def at_least_one_field(self):
        if not self.model_fields_set:
            raise ValueError('At least one of displayName or avatarUrl must be provided')
        return self
