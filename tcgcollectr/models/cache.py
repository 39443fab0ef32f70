"""
接口缓存模型 - 目录查询结果的新鲜度记录
"""
from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow


class ApiCache(db.Model):
    """
    目录查询缓存
    endpoint_key 为查询参数的指纹，expires_at 为对客户端承诺的过期时间
    """
    __tablename__ = 'api_cache'

    id = db.Column(db.Integer, primary_key=True)

    # 查询指纹 (sha256)
    endpoint_key = db.Column(db.String(64), unique=True, nullable=False)

    # 缓存内容
    payload = db.Column(db.JSON)

    # 写入/过期时间
    fetched_at = db.Column(db.DateTime, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    def __repr__(self):
        return f'<ApiCache {self.endpoint_key[:12]} expires={self.expires_at}>'
