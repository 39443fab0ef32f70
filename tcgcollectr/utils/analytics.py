"""
统计事件 - 匿名化后在后台写入
"""
from tcgcollectr import db
from tcgcollectr.utils.api_helpers import hash_string
from tcgcollectr.utils.background import dispatch
from tcgcollectr.utils.clock import isoformat, utcnow


def track_event(event_type, user_id=None, ip=None, user_agent=None):
    """记录一条统计事件，不等待结果，失败不影响请求"""
    event_data = {
        'ip_hash': hash_string(ip) if ip else None,
        'user_agent': (user_agent or '')[:500] or None,
        'timestamp': isoformat(utcnow()),
    }
    return dispatch(record_event, event_type, user_id, event_data)


def record_event(event_type, user_id, event_data):
    from tcgcollectr.models.analytics import AnalyticsEvent

    db.session.add(AnalyticsEvent(event_type=event_type, user_id=user_id, event_data=event_data))
    db.session.commit()
