"""
自定义列表服务
"""
from collections import defaultdict

from flask import current_app
from loguru import logger

from tcgcollectr import db
from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.models import CollectionEntry, ListEntry, UserList
from tcgcollectr.services.catalog import resolve_market_prices
from tcgcollectr.services.collection import entries_with_prices, owned_entries_query
from tcgcollectr.utils.clock import isoformat
from tcgcollectr.utils.numbers import to_float


def list_dto(user_list, stats=None):
    entry_count, total_value = stats or (0, 0.0)
    return {
        'id': user_list.id,
        'name': user_list.name,
        'sortOrder': user_list.sort_order,
        'entryCount': entry_count,
        'totalValue': round(total_value, 2),
        'createdAt': isoformat(user_list.created_at),
        'updatedAt': isoformat(user_list.updated_at),
    }


def _list_stats(list_ids):
    """{list_id: (条目数, 市场总价)}"""
    if not list_ids:
        return {}

    rows = db.session.query(ListEntry.list_id, CollectionEntry.card_id, CollectionEntry.quantity).join(
        CollectionEntry, ListEntry.collection_entry_id == CollectionEntry.id
    ).filter(ListEntry.list_id.in_(list_ids)).all()

    prices = resolve_market_prices(list({card_id for _, card_id, _ in rows}))
    counts = defaultdict(int)
    values = defaultdict(float)
    for list_id, card_id, quantity in rows:
        counts[list_id] += 1
        price = prices.get(card_id)
        if price is not None:
            values[list_id] += quantity * to_float(price.price)
    return {list_id: (counts[list_id], values[list_id]) for list_id in list_ids}


def _get_owned_list(user_id, list_id):
    user_list = UserList.owned_by(user_id).filter(UserList.id == list_id).first()
    if user_list is None:
        raise ServiceError(ErrorCodes.LIST_NOT_FOUND, 'List not found', 404)
    return user_list


def _check_name_available(user_id, name, exclude_id=None):
    q = UserList.owned_by(user_id).filter(UserList.name == name)
    if exclude_id is not None:
        q = q.filter(UserList.id != exclude_id)
    if q.first() is not None:
        raise ServiceError(ErrorCodes.LIST_NAME_EXISTS, 'A list with this name already exists', 409)


def get_lists(user_id):
    """GET /lists"""
    lists = UserList.owned_by(user_id).order_by(UserList.sort_order, UserList.created_at).all()
    stats = _list_stats([lst.id for lst in lists])
    return {'data': [list_dto(lst, stats.get(lst.id)) for lst in lists]}


def create_list(user_id, body):
    """POST /lists"""
    max_lists = current_app.config['MAX_LISTS_PER_USER']
    count = UserList.owned_by(user_id).count()
    if count >= max_lists:
        raise ServiceError(
            ErrorCodes.LIST_LIMIT_REACHED, f'Maximum of {max_lists} lists reached', 400,
            details={'limit': max_lists},
        )
    _check_name_available(user_id, body.name)

    user_list = UserList(user_id=user_id, name=body.name, sort_order=count)
    db.session.add(user_list)
    db.session.commit()
    logger.debug(f"已创建列表: {user_list.id}")
    return list_dto(user_list)


def get_list(user_id, list_id, query):
    """GET /lists/<id>，条目分页"""
    user_list = _get_owned_list(user_id, list_id)

    pagination = owned_entries_query(user_id).join(
        ListEntry, ListEntry.collection_entry_id == CollectionEntry.id
    ).filter(
        ListEntry.list_id == user_list.id
    ).order_by(ListEntry.added_at.desc(), CollectionEntry.id).paginate(
        page=query.page, per_page=query.page_size,
        max_per_page=current_app.config['MAX_PAGE_SIZE'], error_out=False,
    )

    dto = list_dto(user_list, _list_stats([user_list.id]).get(user_list.id))
    dto['entries'] = entries_with_prices(pagination.items)
    dto['pagination'] = {
        'page': query.page,
        'limit': query.page_size,
        'totalItems': pagination.total,
        'totalPages': pagination.pages,
    }
    return dto


def update_list(user_id, list_id, body):
    """PATCH /lists/<id>"""
    user_list = _get_owned_list(user_id, list_id)

    if 'name' in body.model_fields_set:
        _check_name_available(user_id, body.name, exclude_id=user_list.id)
        user_list.name = body.name
    if 'sort_order' in body.model_fields_set and body.sort_order is not None:
        user_list.sort_order = body.sort_order

    db.session.commit()
    return list_dto(user_list, _list_stats([user_list.id]).get(user_list.id))


def delete_list(user_id, list_id):
    """DELETE /lists/<id>，收藏记录本身不受影响"""
    user_list = _get_owned_list(user_id, list_id)
    db.session.delete(user_list)
    db.session.commit()
    return {'message': 'List deleted successfully'}


def add_entries(user_id, list_id, body):
    """
    POST /lists/<id>/entries

    只能添加自己的收藏，已在列表中的记录忽略
    """
    user_list = _get_owned_list(user_id, list_id)
    entry_ids = body.entry_ids

    owned = {
        entry_id for (entry_id,) in db.session.query(CollectionEntry.id).filter(
            CollectionEntry.user_id == user_id, CollectionEntry.id.in_(entry_ids)
        )
    }
    missing = [entry_id for entry_id in entry_ids if entry_id not in owned]
    if missing:
        raise ServiceError(
            ErrorCodes.ENTRY_NOT_FOUND, 'One or more collection entries were not found', 404,
            details={'entryIds': missing},
        )

    existing = {
        entry_id for (entry_id,) in db.session.query(ListEntry.collection_entry_id).filter(
            ListEntry.list_id == user_list.id, ListEntry.collection_entry_id.in_(entry_ids)
        )
    }
    added = 0
    for entry_id in entry_ids:
        if entry_id in existing:
            continue
        db.session.add(ListEntry(list_id=user_list.id, collection_entry_id=entry_id))
        added += 1
    db.session.commit()

    return {'added': added, 'list': list_dto(user_list, _list_stats([user_list.id]).get(user_list.id))}


def remove_entry(user_id, list_id, entry_id):
    """DELETE /lists/<id>/entries/<entry_id>"""
    user_list = _get_owned_list(user_id, list_id)
    member = ListEntry.query.filter_by(list_id=user_list.id, collection_entry_id=entry_id).first()
    if member is None:
        raise ServiceError(ErrorCodes.ENTRY_NOT_FOUND, 'Entry is not in this list', 404)

    db.session.delete(member)
    db.session.commit()
    return {'message': 'Entry removed from list'}
