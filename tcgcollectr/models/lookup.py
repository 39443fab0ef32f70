"""
字典表 - 卡牌游戏类型、稀有度、品相、评级公司、价格来源
"""
from tcgcollectr import db
from tcgcollectr.utils.clock import utcnow
from tcgcollectr.utils.numbers import to_float


class TcgType(db.Model):
    """卡牌游戏类型 (目前只有宝可梦)"""
    __tablename__ = 'tcg_types'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<TcgType {self.code}>'

    def to_dict(self):
        return {'id': self.id, 'code': self.code, 'name': self.name}


class Rarity(db.Model):
    """稀有度: common / uncommon / rare / ultra rare ..."""
    __tablename__ = 'rarities'

    id = db.Column(db.Integer, primary_key=True)
    tcg_type_id = db.Column(db.Integer, db.ForeignKey('tcg_types.id'), nullable=False)
    code = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    # 同一游戏类型内 code 唯一
    __table_args__ = (
        db.UniqueConstraint('tcg_type_id', 'code', name='uq_rarity_tcg_code'),
    )

    def __repr__(self):
        return f'<Rarity {self.code}>'

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'sortOrder': self.sort_order,
            'tcgTypeId': self.tcg_type_id,
        }


class CardCondition(db.Model):
    """卡片品相: mint -> poor"""
    __tablename__ = 'card_conditions'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(200))
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<CardCondition {self.code}>'

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'sortOrder': self.sort_order,
        }


class GradingCompany(db.Model):
    """评级公司 (PSA/BGS/CGC)，分数必须在 min_grade ~ max_grade 之间"""
    __tablename__ = 'grading_companies'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(10), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    min_grade = db.Column(db.Numeric(3, 1), nullable=False, default=1.0)
    max_grade = db.Column(db.Numeric(3, 1), nullable=False, default=10.0)

    def __repr__(self):
        return f'<GradingCompany {self.code}>'

    def accepts(self, grade):
        return to_float(self.min_grade) <= grade <= to_float(self.max_grade)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'minGrade': to_float(self.min_grade),
            'maxGrade': to_float(self.max_grade),
        }


class PriceSource(db.Model):
    """价格来源: tcgcsv / pokemontcg"""
    __tablename__ = 'price_sources'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    url = db.Column(db.String(500))

    def __repr__(self):
        return f'<PriceSource {self.code}>'


TCG_TYPES = [
    ('pokemon', 'Pokémon TCG'),
]

CONDITIONS = [
    ('mint', 'Mint', 'Perfect card, no visible wear'),
    ('near_mint', 'Near Mint', 'Minimal wear visible only on close inspection'),
    ('excellent', 'Excellent', 'Light edge or corner wear'),
    ('good', 'Good', 'Moderate wear, no creases'),
    ('played', 'Played', 'Heavy wear, possible minor creases'),
    ('poor', 'Poor', 'Major damage'),
]

GRADING_COMPANIES = [
    ('PSA', 'Professional Sports Authenticator', 1.0, 10.0),
    ('BGS', 'Beckett Grading Services', 1.0, 10.0),
    ('CGC', 'Certified Guaranty Company', 1.0, 10.0),
]

PRICE_SOURCES = [
    ('tcgcsv', 'TCGPlayer (via tcgcsv.com)', 'https://tcgcsv.com'),
    ('pokemontcg', 'pokemontcg.io', 'https://pokemontcg.io'),
]


def seed_lookups():
    """写入字典表初始数据 (可重复执行)"""
    for code, name in TCG_TYPES:
        if not TcgType.query.filter_by(code=code).first():
            db.session.add(TcgType(code=code, name=name))

    for order, (code, name, description) in enumerate(CONDITIONS, start=1):
        if not CardCondition.query.filter_by(code=code).first():
            db.session.add(CardCondition(code=code, name=name, description=description, sort_order=order))

    for code, name, min_grade, max_grade in GRADING_COMPANIES:
        if not GradingCompany.query.filter_by(code=code).first():
            db.session.add(GradingCompany(code=code, name=name, min_grade=min_grade, max_grade=max_grade))

    for code, name, url in PRICE_SOURCES:
        if not PriceSource.query.filter_by(code=code).first():
            db.session.add(PriceSource(code=code, name=name, url=url))

    db.session.commit()
