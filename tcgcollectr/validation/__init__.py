"""
请求校验 - 把 query string / JSON body 校验为 pydantic 模型

校验失败统一转换为 ServiceError(400)，details 为 {"fields": {字段名: [错误信息]}}
"""
import json

from flask import request
from pydantic import BaseModel, ConfigDict, ValidationError

from tcgcollectr.errors import ErrorCodes, ServiceError

# 不属于某个字段的错误 (如 "至少提供一个字段") 放在这个 key 下
ROOT_FIELD = 'body'


class RequestModel(BaseModel):
    """请求模型基类: 忽略未知字段，字段既可以用 camelCase 别名也可以用原名"""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)


def _clean_message(message):
    # pydantic 会给 ValueError 的信息加上前缀
    for prefix in ('Value error, ', 'Assertion failed, '):
        if message.startswith(prefix):
            return message[len(prefix):]
    return message


def field_errors(exc, model_cls=None):
    """
    ValidationError -> {字段名: [错误信息]}

    validate_default 触发的错误 loc 里是 python 字段名，这里统一换成请求里用的别名
    """
    model_fields = getattr(model_cls, 'model_fields', None) or {}
    fields = {}
    for err in exc.errors():
        loc = [str(part) for part in err['loc']]
        name = loc[0] if loc else ROOT_FIELD
        field = model_fields.get(name)
        if field is not None:
            name = field.alias or name
        fields.setdefault(name, []).append(_clean_message(err['msg']))
    return fields


def parse_model(model_cls, data, code=ErrorCodes.VALIDATION_ERROR, message='Invalid request data'):
    """校验 data，失败抛出 ServiceError"""
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ServiceError(code, message, 400, details={'fields': field_errors(e, model_cls)})


def query_args(req=None):
    """
    读取 query string

    同名参数只取第一个，空白值视为未提供
    """
    req = req or request
    args = {}
    for key, value in req.args.items():
        if value is None or not value.strip():
            continue
        args[key] = value
    return args


def parse_json_body(req=None):
    """读取 JSON 请求体，空请求体返回 {}"""
    req = req or request
    raw = req.get_data(cache=True, as_text=True)
    if not raw or not raw.strip():
        return {}

    try:
        body = json.loads(raw)
    except ValueError:
        raise ServiceError(
            ErrorCodes.VALIDATION_ERROR, 'Invalid JSON in request body', 400,
            details={'fields': {ROOT_FIELD: ['Request body must be valid JSON']}},
        )

    if not isinstance(body, dict):
        raise ServiceError(
            ErrorCodes.VALIDATION_ERROR, 'Invalid JSON in request body', 400,
            details={'fields': {ROOT_FIELD: ['Request body must be a JSON object']}},
        )
    return body


def validate_query(model_cls, code=ErrorCodes.VALIDATION_ERROR, message='Invalid query parameters'):
    return parse_model(model_cls, query_args(), code=code, message=message)


def validate_body(model_cls, message='Invalid request data'):
    return parse_model(model_cls, parse_json_body(), message=message)
