"""
认证请求体校验
"""
import re

from pydantic import EmailStr, Field, field_validator

from tcgcollectr.validation import RequestModel

# 至少一个小写、一个大写、一个数字、一个符号
PASSWORD_REGEX = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]')

PASSWORD_MIN_LENGTH = 12
PASSWORD_MAX_LENGTH = 72  # bcrypt 只使用前 72 字节
EMAIL_MAX_LENGTH = 254


def check_password_strength(password):
    """返回第一条不满足的规则，满足时返回 None"""
    if len(password) < PASSWORD_MIN_LENGTH:
        return f'Password must be at least {PASSWORD_MIN_LENGTH} characters'
    if len(password) > PASSWORD_MAX_LENGTH:
        return f'Password must not exceed {PASSWORD_MAX_LENGTH} characters'
    if not PASSWORD_REGEX.match(password):
        return ('Password must contain at least one uppercase letter, one lowercase letter, '
                'one digit, and one symbol')
    return None


def _normalize_email(value):
    if isinstance(value, str):
        value = value.strip().lower()
        if len(value) > EMAIL_MAX_LENGTH:
            raise ValueError(f'Email must not exceed {EMAIL_MAX_LENGTH} characters')
    return value


class EmailBody(RequestModel):
    email: EmailStr

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class StrongPasswordBody(RequestModel):
    password: str

    @field_validator('password')
    @classmethod
    def strong_password(cls, v):
        problem = check_password_strength(v)
        if problem:
            raise ValueError(problem)
        return v


class RegisterBody(EmailBody, StrongPasswordBody):
    """POST /auth/register"""


class LoginBody(EmailBody):
    """POST /auth/login (登录不校验密码强度)"""
    password: str = Field(min_length=1)


class ResetPasswordBody(EmailBody):
    """POST /auth/reset-password"""


class UpdatePasswordBody(StrongPasswordBody):
    """POST /auth/update-password"""
