"""
目录缓存 - 查询指纹与过期时间

同一组查询参数在缓存有效期内总是返回同一个 cacheExpiresAt。
读缓存失败时退化为新的过期时间，写缓存在后台执行，失败只记日志
"""
import hashlib
import json
from datetime import timedelta

from flask import current_app
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from tcgcollectr import db
from tcgcollectr.utils.background import dispatch
from tcgcollectr.utils.clock import utcnow


def fingerprint(endpoint, params):
    """
    查询指纹: endpoint + 非空参数的规范化 JSON 的 sha256

    参数顺序不影响结果
    """
    cleaned = {k: v for k, v in sorted(params.items()) if v is not None}
    canonical = json.dumps({'endpoint': endpoint, 'params': cleaned},
                           sort_keys=True, separators=(',', ':'), default=str)
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def cache_expiry(key, payload, now=None):
    """
    返回该查询的过期时间 (naive UTC datetime)

    已有未过期的记录时沿用其 expires_at，否则从 now 起算新的有效期并在后台写入
    """
    from tcgcollectr.models.cache import ApiCache

    now = now or utcnow()
    try:
        cached = ApiCache.query.filter_by(endpoint_key=key).first()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning(f"读取目录缓存失败: {e.__class__.__name__}")
        cached = None

    if cached is not None and cached.expires_at > now:
        return cached.expires_at

    ttl = timedelta(hours=current_app.config['CATALOG_CACHE_TTL_HOURS'])
    expires_at = now.replace(microsecond=0) + ttl
    dispatch(store_cache_entry, key, payload, now, expires_at)
    return expires_at


def store_cache_entry(key, payload, fetched_at, expires_at):
    """写入/覆盖缓存记录 (后台任务)"""
    from tcgcollectr.models.cache import ApiCache

    try:
        cached = ApiCache.query.filter_by(endpoint_key=key).first()
        if cached is None:
            cached = ApiCache(endpoint_key=key)
            db.session.add(cached)
        cached.payload = payload
        cached.fetched_at = fetched_at
        cached.expires_at = expires_at
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def prune_expired(now=None):
    """删除已过期的缓存记录，返回删除条数"""
    from tcgcollectr.models.cache import ApiCache

    now = now or utcnow()
    deleted = ApiCache.query.filter(ApiCache.expires_at <= now).delete(synchronize_session=False)
    db.session.commit()
    logger.info(f"已清理过期目录缓存: {deleted} 条")
    return deleted
