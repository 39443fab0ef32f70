"""
时间工具 - 统一使用不带时区的 UTC 时间写库
"""
from datetime import datetime, timezone


def utcnow():
    """当前 UTC 时间 (naive)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value):
    """datetime/date -> ISO 8601 字符串, datetime 追加 Z 后缀"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat() + 'Z'
    return value.isoformat()
