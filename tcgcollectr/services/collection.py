"""
收藏服务 - 所有查询都限定在当前用户自己的记录内
"""
from collections import OrderedDict

from flask import current_app
from loguru import logger
from sqlalchemy.orm import contains_eager, joinedload

from tcgcollectr import db
from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.models import (
    Card, CardCondition, CardSet, CollectionEntry, GradingCompany, ListEntry, UserList,
)
from tcgcollectr.services.catalog import card_detail_dto, card_list_dto, resolve_market_prices
from tcgcollectr.utils.clock import isoformat
from tcgcollectr.utils.numbers import to_float
from tcgcollectr.validation.collection import MAX_QUANTITY

COLLECTION_SORT_COLUMNS = {
    'created_at': (CollectionEntry.created_at,),
    'name': (Card.name,),
    'number': (CardSet.name, Card.number_sort),
}

TOP_SETS_LIMIT = 5


def field_error(field, message):
    return ServiceError(
        ErrorCodes.VALIDATION_ERROR, 'Invalid request data', 400,
        details={'fields': {field: [message]}},
    )


def _money(value):
    return round(value, 2)


# ---------------------------------------------------------------- DTO

def _lookup_ref(item):
    if item is None:
        return None
    return {'id': item.id, 'name': item.name, 'code': item.code}


def entry_list_dto(entry, price=None):
    return {
        'id': entry.id,
        'quantity': entry.quantity,
        'condition': _lookup_ref(entry.condition),
        'gradingCompany': _lookup_ref(entry.grading_company),
        'gradeValue': to_float(entry.grade_value),
        'purchasePrice': to_float(entry.purchase_price),
        'notes': entry.notes,
        'dateAdded': isoformat(entry.created_at),
        'lastUpdated': isoformat(entry.updated_at),
        'card': card_list_dto(entry.card, price),
    }


def entry_detail_dto(entry, price=None):
    dto = entry_list_dto(entry, price)
    dto['card'] = card_detail_dto(entry.card, price)
    market = to_float(price.price) if price is not None else 0.0
    dto['estimatedValue'] = _money(entry.quantity * market)
    return dto


def entries_with_prices(entries):
    """批量查价格后转换为列表 DTO"""
    prices = resolve_market_prices(list({entry.card_id for entry in entries}))
    return [entry_list_dto(entry, prices.get(entry.card_id)) for entry in entries]


# ---------------------------------------------------------------- 查询

def owned_entries_query(user_id):
    """当前用户的收藏，预加载卡片/卡包/品相/评级公司"""
    return CollectionEntry.owned_by(user_id).join(
        Card, CollectionEntry.card_id == Card.id
    ).join(
        CardSet, Card.set_id == CardSet.id
    ).options(
        contains_eager(CollectionEntry.card).contains_eager(Card.card_set),
        contains_eager(CollectionEntry.card).joinedload(Card.rarity),
        joinedload(CollectionEntry.condition),
        joinedload(CollectionEntry.grading_company),
    )


def get_owned_entry(user_id, entry_id):
    entry = owned_entries_query(user_id).filter(CollectionEntry.id == entry_id).first()
    if entry is None:
        raise ServiceError(ErrorCodes.ENTRY_NOT_FOUND, 'Collection entry not found', 404)
    return entry


def list_entries(user_id, query):
    """
    GET /collection

    Returns:
        {"data": [...], "meta": {page, pageSize, totalItems, totalPages}}
    """
    q = owned_entries_query(user_id)

    if query.set_id:
        q = q.filter(Card.set_id == query.set_id)
    if query.condition_id:
        q = q.filter(CollectionEntry.condition_id == query.condition_id)
    if query.search:
        q = q.filter(Card.name.icontains(query.search, autoescape=True))
    if query.list_id:
        if UserList.owned_by(user_id).filter(UserList.id == query.list_id).first() is None:
            raise ServiceError(ErrorCodes.LIST_NOT_FOUND, 'List not found', 404)
        q = q.join(ListEntry, ListEntry.collection_entry_id == CollectionEntry.id).filter(
            ListEntry.list_id == query.list_id
        )

    if query.sort == 'price':
        # 按购入单价排序，没有购入价的放最后
        columns = [CollectionEntry.purchase_price.is_(None)]
        price_column = CollectionEntry.purchase_price
        columns.append(price_column.desc() if query.order == 'desc' else price_column.asc())
        columns.append(CollectionEntry.id)
    else:
        sort_columns = COLLECTION_SORT_COLUMNS[query.sort] + (CollectionEntry.id,)
        if query.order == 'desc':
            columns = [column.desc() for column in sort_columns]
        else:
            columns = list(sort_columns)

    pagination = q.order_by(*columns).paginate(
        page=query.page, per_page=query.page_size,
        max_per_page=current_app.config['MAX_PAGE_SIZE'], error_out=False,
    )

    return {
        'data': entries_with_prices(pagination.items),
        'meta': {
            'page': query.page,
            'pageSize': query.page_size,
            'totalItems': pagination.total,
            'totalPages': pagination.pages,
        },
    }


def get_entry(user_id, entry_id):
    entry = get_owned_entry(user_id, entry_id)
    price = resolve_market_prices([entry.card_id]).get(entry.card_id)
    return entry_detail_dto(entry, price)


# ---------------------------------------------------------------- 写入

def _check_condition(condition_id):
    if condition_id is not None and db.session.get(CardCondition, condition_id) is None:
        raise field_error('conditionId', 'Unknown conditionId')


def _check_grading(company_id, grade_value):
    """评分和评级公司必须同时出现，分数在该公司的范围内"""
    if company_id is None and grade_value is None:
        return
    if company_id is None:
        raise field_error('gradeValue', 'gradeValue requires gradingCompanyId')
    if grade_value is None:
        raise field_error('gradeValue', 'gradeValue is required when gradingCompanyId is set')

    company = db.session.get(GradingCompany, company_id)
    if company is None:
        raise field_error('gradingCompanyId', 'Unknown gradingCompanyId')
    if not company.accepts(grade_value):
        raise field_error(
            'gradeValue',
            f'gradeValue must be between {to_float(company.min_grade)} and {to_float(company.max_grade)} '
            f'for {company.code}',
        )


def _find_duplicate(user_id, card_id, condition_id, company_id, grade_value, exclude_id=None):
    q = CollectionEntry.owned_by(user_id).filter(CollectionEntry.card_id == card_id)
    q = q.filter(CollectionEntry.condition_id.is_(None) if condition_id is None
                 else CollectionEntry.condition_id == condition_id)
    q = q.filter(CollectionEntry.grading_company_id.is_(None) if company_id is None
                 else CollectionEntry.grading_company_id == company_id)
    q = q.filter(CollectionEntry.grade_value.is_(None) if grade_value is None
                 else CollectionEntry.grade_value == grade_value)
    if exclude_id is not None:
        q = q.filter(CollectionEntry.id != exclude_id)
    return q.first()


def add_entry(user_id, body):
    """
    POST /collection

    同一张卡、同品相、同评级的记录合并数量
    """
    if db.session.get(Card, body.card_id) is None:
        raise ServiceError(ErrorCodes.CARD_NOT_FOUND, 'Card not found', 404)
    _check_condition(body.condition_id)
    _check_grading(body.grading_company_id, body.grade_value)

    entry = _find_duplicate(user_id, body.card_id, body.condition_id,
                            body.grading_company_id, body.grade_value)
    if entry is not None:
        if entry.quantity + body.quantity > MAX_QUANTITY:
            raise field_error('quantity', f'quantity must not exceed {MAX_QUANTITY}')
        entry.quantity += body.quantity
        if body.purchase_price is not None:
            entry.purchase_price = body.purchase_price
        if body.notes is not None:
            entry.notes = body.notes
        logger.debug(f"收藏合并数量: {entry.id} +{body.quantity}")
    else:
        entry = CollectionEntry(
            user_id=user_id,
            card_id=body.card_id,
            condition_id=body.condition_id,
            quantity=body.quantity,
            grading_company_id=body.grading_company_id,
            grade_value=body.grade_value,
            purchase_price=body.purchase_price,
            notes=body.notes,
        )
        db.session.add(entry)

    db.session.commit()
    return get_entry(user_id, entry.id)


def update_entry(user_id, entry_id, body):
    """PATCH /collection/<id>，只更新请求中出现的字段"""
    entry = get_owned_entry(user_id, entry_id)
    fields = body.model_fields_set

    condition_id = body.condition_id if 'condition_id' in fields else entry.condition_id
    company_id = entry.grading_company_id
    grade_value = to_float(entry.grade_value)
    if 'grading_company_id' in fields:
        company_id = body.grading_company_id
        if company_id is None:
            grade_value = None
    if 'grade_value' in fields:
        grade_value = body.grade_value

    if 'condition_id' in fields:
        _check_condition(condition_id)
    _check_grading(company_id, grade_value)

    if _find_duplicate(user_id, entry.card_id, condition_id, company_id, grade_value, exclude_id=entry.id):
        raise ServiceError(
            ErrorCodes.DUPLICATE_ENTRY,
            'An entry with the same card, condition and grading already exists', 409,
        )

    entry.condition_id = condition_id
    entry.grading_company_id = company_id
    entry.grade_value = grade_value
    if 'quantity' in fields:
        entry.quantity = body.quantity
    if 'purchase_price' in fields:
        entry.purchase_price = body.purchase_price
    if 'notes' in fields:
        entry.notes = body.notes

    db.session.commit()
    return get_entry(user_id, entry.id)


def delete_entry(user_id, entry_id):
    """DELETE /collection/<id>，同时移出所有列表"""
    entry = get_owned_entry(user_id, entry_id)
    db.session.delete(entry)
    db.session.commit()
    return {'message': 'Collection entry deleted successfully'}


# ---------------------------------------------------------------- 统计

def summary(user_id):
    """GET /collection/summary"""
    entries = owned_entries_query(user_id).all()
    prices = resolve_market_prices(list({entry.card_id for entry in entries}))

    total_cards = 0
    market_value = 0.0
    purchase_cost = 0.0
    graded_value = 0.0
    ungraded_value = 0.0
    sets = OrderedDict()
    conditions = OrderedDict()

    for entry in entries:
        price = prices.get(entry.card_id)
        value = entry.quantity * (to_float(price.price) if price is not None else 0.0)

        total_cards += entry.quantity
        market_value += value
        if entry.purchase_price is not None:
            purchase_cost += entry.quantity * to_float(entry.purchase_price)
        if entry.grading_company_id is not None:
            graded_value += value
        else:
            ungraded_value += value

        card_set = entry.card.card_set
        bucket = sets.setdefault(card_set.id, {
            'setId': card_set.id,
            'setName': card_set.name,
            'cards': set(),
            'ownedTotalCards': 0,
            'setTotalCards': card_set.total_cards or 0,
        })
        bucket['cards'].add(entry.card_id)
        bucket['ownedTotalCards'] += entry.quantity

        if entry.condition is not None:
            by_condition = conditions.setdefault(entry.condition.id, {
                'conditionId': entry.condition.id,
                'conditionName': entry.condition.name,
                'totalValue': 0.0,
                'cardCount': 0,
            })
            by_condition['totalValue'] += value
            by_condition['cardCount'] += entry.quantity

    top_sets = []
    for bucket in sets.values():
        owned_unique = len(bucket.pop('cards'))
        set_total = bucket['setTotalCards']
        bucket['ownedUniqueCards'] = owned_unique
        bucket['completionPercentage'] = round(owned_unique / set_total * 100, 2) if set_total else 0.0
        top_sets.append(bucket)
    top_sets.sort(key=lambda s: (-s['ownedUniqueCards'], s['setName']))

    value_by_condition = []
    for item in conditions.values():
        item['totalValue'] = _money(item['totalValue'])
        value_by_condition.append(item)

    return {
        'totalEntries': len(entries),
        'totalCards': total_cards,
        'totalMarketValue': _money(market_value),
        'totalPurchaseCost': _money(purchase_cost),
        'totalProfitLoss': _money(market_value - purchase_cost),
        'topSets': top_sets[:TOP_SETS_LIMIT],
        'valueByCondition': value_by_condition,
        'gradedCardsValue': _money(graded_value),
        'ungradedCardsValue': _money(ungraded_value),
    }
