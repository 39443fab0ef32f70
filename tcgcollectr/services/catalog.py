"""
卡片目录 - 卡片搜索、卡包列表、字典表查询

卡片搜索流程:
1. 排序字段走白名单，最后按 Card.id 保证稳定顺序
2. 可选过滤条件全部 AND 组合
3. 精确计数 + 分页
4. 按价格来源优先级为当前页的卡片选出市场价
5. 计算缓存过期时间
6. 转换为 DTO
"""
from datetime import datetime

from flask import current_app
from loguru import logger
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import contains_eager, joinedload

from tcgcollectr import db
from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.models import (
    Card, CardCondition, CardPrice, CardSet, GradingCompany, PriceSource, Rarity, TcgType,
)
from tcgcollectr.services import catalog_cache
from tcgcollectr.utils.clock import isoformat
from tcgcollectr.utils.numbers import to_float

# 排序白名单: sort 参数 -> 排序列
CARD_SORT_COLUMNS = {
    'set': (CardSet.name, Card.number_sort),
    'name': (Card.name,),
    'number': (Card.number_sort,),
}

SET_SORT_COLUMNS = {
    'name': CardSet.name,
    'release_date': CardSet.release_date,
    'series': CardSet.series,
}

_EPOCH = datetime(1970, 1, 1)


def catalog_unavailable():
    return ServiceError(ErrorCodes.CATALOG_UNAVAILABLE, 'Card catalog is temporarily unavailable', 503)


# ---------------------------------------------------------------- DTO

def price_dto(price):
    if price is None:
        return None
    return {
        'id': price.id,
        'price': to_float(price.price),
        'currency': price.currency,
        'priceType': price.price_type,
        'lastUpdated': isoformat(price.fetched_at),
        'source': {
            'id': price.source.id,
            'name': price.source.name,
            'code': price.source.code,
        },
    }


def rarity_dto(rarity):
    if rarity is None:
        return None
    return {'id': rarity.id, 'name': rarity.name, 'code': rarity.code}


def card_list_dto(card, price=None):
    """卡片列表项"""
    card_set = card.card_set
    return {
        'id': card.id,
        'externalId': card.external_id,
        'name': card.name,
        'cardNumber': card.card_number,
        'imageSmallUrl': card.image_small_url,
        'imageLargeUrl': card.image_large_url,
        'supertype': card.supertype,
        'subtypes': card.subtype_list,
        'types': card.type_list,
        'hp': card.hp,
        'rarity': rarity_dto(card.rarity),
        'set': {
            'id': card_set.id,
            'name': card_set.name,
            'series': card_set.series,
            'symbolUrl': card_set.symbol_url,
        },
        'marketPrice': price_dto(price),
    }


def card_detail_dto(card, price=None):
    """卡片详情: 列表项 + 招式/特性等完整信息"""
    dto = card_list_dto(card, price)
    dto.update({
        'abilities': card.abilities or [],
        'attacks': card.attacks or [],
        'weaknesses': card.weaknesses or [],
        'resistances': card.resistances or [],
        'retreatCost': card.retreat_cost,
        'rules': card.rules or [],
        'artist': card.artist,
        'flavorText': card.flavor_text,
        'evolvesFrom': card.evolves_from,
        'set': set_dto(card.card_set),
        'createdAt': isoformat(card.created_at),
        'updatedAt': isoformat(card.updated_at),
    })
    return dto


def set_dto(card_set):
    tcg_type = card_set.tcg_type
    return {
        'id': card_set.id,
        'externalId': card_set.external_id,
        'name': card_set.name,
        'series': card_set.series,
        'releaseDate': isoformat(card_set.release_date),
        'totalCards': card_set.total_cards,
        'symbolUrl': card_set.symbol_url,
        'logoUrl': card_set.logo_url,
        'tcgType': tcg_type.to_dict() if tcg_type else None,
    }


def set_detail_dto(card_set):
    dto = set_dto(card_set)
    dto.update({
        'lastSyncedAt': isoformat(card_set.last_synced_at),
        'createdAt': isoformat(card_set.created_at),
        'updatedAt': isoformat(card_set.updated_at),
    })
    return dto


# ---------------------------------------------------------------- 价格

def resolve_market_prices(card_ids):
    """
    为每张卡选出一条市场价

    规则: 来源优先级越靠前越优先，同一来源取最新抓取的记录

    Returns:
        {card_id: CardPrice}，没有价格的卡不在结果中
    """
    if not card_ids:
        return {}

    priority = current_app.config['PRICE_SOURCE_PRIORITY']
    rank = {code: index for index, code in enumerate(priority)}

    rows = CardPrice.query.join(PriceSource, CardPrice.source_id == PriceSource.id).options(
        contains_eager(CardPrice.source)
    ).filter(
        CardPrice.card_id.in_(card_ids),
        CardPrice.price_type == current_app.config['MARKET_PRICE_TYPE'],
        PriceSource.code.in_(priority),
    ).all()

    best = {}
    for price in rows:
        current = best.get(price.card_id)
        if current is None:
            best[price.card_id] = price
            continue

        new_rank, old_rank = rank[price.source.code], rank[current.source.code]
        newer = (price.fetched_at or _EPOCH) > (current.fetched_at or _EPOCH)
        if new_rank < old_rank or (new_rank == old_rank and newer):
            best[price.card_id] = price
    return best


# ---------------------------------------------------------------- 卡片

def _card_query():
    return Card.query.join(CardSet, Card.set_id == CardSet.id).options(
        contains_eager(Card.card_set).joinedload(CardSet.tcg_type),
        joinedload(Card.rarity),
    )


def search_cards(query, now=None):
    """
    GET /cards

    Args:
        query: CardSearchQuery
        now: 当前时间 (测试时注入)

    Returns:
        {"data": [...], "meta": {page, pageSize, totalItems, totalPages, cacheExpiresAt}}
    """
    try:
        q = _card_query()

        if query.q:
            q = q.filter(Card.name.icontains(query.q, autoescape=True))
        if query.set_id:
            q = q.filter(Card.set_id == query.set_id)
        if query.set_external_id:
            q = q.filter(CardSet.external_id == query.set_external_id)
        if query.card_number:
            q = q.filter(Card.card_number == query.card_number)
        if query.rarity_id:
            q = q.filter(Card.rarity_id == query.rarity_id)
        if query.type:
            # types 以逗号分隔，前后补逗号后做精确的成员匹配
            q = q.filter((',' + Card.types + ',').contains(f',{query.type},'))

        columns = CARD_SORT_COLUMNS[query.sort] + (Card.id,)
        if query.order == 'desc':
            columns = tuple(column.desc() for column in columns)

        pagination = q.order_by(*columns).paginate(
            page=query.page, per_page=query.page_size,
            max_per_page=current_app.config['MAX_PAGE_SIZE'], error_out=False,
        )
        cards = pagination.items
        prices = resolve_market_prices([card.id for card in cards])
        data = [card_list_dto(card, prices.get(card.id)) for card in cards]
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"卡片搜索失败: {e.__class__.__name__}")
        raise catalog_unavailable()

    meta = {
        'page': query.page,
        'pageSize': query.page_size,
        'totalItems': pagination.total,
        'totalPages': pagination.pages,
    }

    key = catalog_cache.fingerprint('cards', query.model_dump())
    expires_at = catalog_cache.cache_expiry(key, {'data': data, 'meta': meta}, now=now)
    meta['cacheExpiresAt'] = isoformat(expires_at)

    return {'data': data, 'meta': meta}


def get_card(card_id):
    """GET /cards/<id>"""
    try:
        card = _card_query().filter(Card.id == card_id).first()
        if card is None:
            raise ServiceError(ErrorCodes.CARD_NOT_FOUND, 'Card not found', 404)
        price = resolve_market_prices([card.id]).get(card.id)
        return card_detail_dto(card, price)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"卡片详情查询失败: {e.__class__.__name__}")
        raise catalog_unavailable()


# ---------------------------------------------------------------- 卡包

def list_sets(query):
    """
    GET /sets

    Returns:
        {"data": [...], "pagination": {page, limit, totalItems, totalPages}}
    """
    q = CardSet.query.options(joinedload(CardSet.tcg_type))

    if query.search:
        q = q.filter(CardSet.name.icontains(query.search, autoescape=True))
    if query.series:
        q = q.filter(CardSet.series == query.series)

    column = SET_SORT_COLUMNS[query.sort]
    if query.order == 'desc':
        q = q.order_by(column.desc(), CardSet.id.desc())
    else:
        q = q.order_by(column.asc(), CardSet.id.asc())

    pagination = q.paginate(
        page=query.page, per_page=query.limit,
        max_per_page=current_app.config['MAX_PAGE_SIZE'], error_out=False,
    )

    return {
        'data': [set_dto(s) for s in pagination.items],
        'pagination': {
            'page': query.page,
            'limit': query.limit,
            'totalItems': pagination.total,
            'totalPages': pagination.pages,
        },
    }


def get_set(set_id):
    """GET /sets/<setId>，setId 可以是内部 id 或上游编号"""
    card_set = CardSet.query.options(joinedload(CardSet.tcg_type)).filter(
        or_(CardSet.id == set_id, CardSet.external_id == set_id)
    ).first()
    if card_set is None:
        raise ServiceError(ErrorCodes.SET_NOT_FOUND, 'Set not found', 404)
    return set_detail_dto(card_set)


# ---------------------------------------------------------------- 字典表

def list_rarities(tcg_type_id=None):
    q = Rarity.query
    if tcg_type_id:
        q = q.filter(Rarity.tcg_type_id == tcg_type_id)
    return {'data': [r.to_dict() for r in q.order_by(Rarity.sort_order, Rarity.id).all()]}


def list_conditions():
    rows = CardCondition.query.order_by(CardCondition.sort_order).all()
    return {'data': [c.to_dict() for c in rows]}


def list_grading_companies():
    rows = GradingCompany.query.order_by(GradingCompany.code).all()
    return {'data': [g.to_dict() for g in rows]}


def list_tcg_types():
    rows = TcgType.query.order_by(TcgType.name).all()
    return {'data': [t.to_dict() for t in rows]}
