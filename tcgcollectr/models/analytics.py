"""
统计事件模型
"""
from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow


class AnalyticsEvent(db.Model):
    """
    统计事件 (注册/登录/登出)
    event_data 只保存 IP 哈希和 User-Agent，不保存原始 IP
    """
    __tablename__ = 'analytics_events'

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(50), nullable=False, index=True)
    user_id = db.Column(db.String(64), index=True)
    event_data = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f'<AnalyticsEvent {self.event_type} user={self.user_id}>'
