"""
卡片价格模型
"""
from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow


class CardPrice(db.Model):
    """
    卡片价格记录
    同一张卡可能有多个来源、多种价格类型，由导入任务按日写入
    """
    __tablename__ = 'card_prices'

    id = db.Column(db.Integer, primary_key=True)

    # 所属卡片
    card_id = db.Column(db.String(36), db.ForeignKey('cards.id'), nullable=False, index=True)

    # 价格来源
    source_id = db.Column(db.Integer, db.ForeignKey('price_sources.id'), nullable=False, index=True)

    # 价格类型: market / low / mid / high
    price_type = db.Column(db.String(20), nullable=False, default='market')

    # 价格
    price = db.Column(db.Numeric(10, 2), nullable=False)

    # 货币
    currency = db.Column(db.String(3), nullable=False, default='USD')

    # 抓取时间
    fetched_at = db.Column(db.DateTime, default=utcnow, index=True)

    # 关系
    source = db.relationship('PriceSource')

    # 联合索引用于快速查询最新价格
    __table_args__ = (
        db.Index('idx_price_card_type_time', 'card_id', 'price_type', 'fetched_at'),
    )

    def __repr__(self):
        return f'<CardPrice {self.card_id} {self.price} {self.currency}>'
