"""
卡片编号处理
"""
import re
from decimal import Decimal

_DIGITS = re.compile(r'\d+')


def normalize_card_number(value):
    """去除首尾空白并转为大写 (如 ' sv001 ' -> 'SV001')"""
    if value is None:
        return None
    return value.strip().upper()


def card_number_sort_key(card_number):
    """
    从卡片编号中提取可排序的数字

    '025/198' -> 25, 'TG05' -> 5, 'SWSH001' -> 1, 无数字 -> 0
    """
    if not card_number:
        return 0
    match = _DIGITS.search(card_number)
    return int(match.group()) if match else 0


def to_float(value):
    """Numeric 列 (Decimal) 转为 JSON 可序列化的 float"""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return value
