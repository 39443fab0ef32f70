"""
收藏路由
"""
from flask import Blueprint
from flask_login import current_user, login_required

from tcgcollectr.services import collection as collection_service
from tcgcollectr.utils.api_helpers import json_response
from tcgcollectr.validation import validate_body, validate_query
from tcgcollectr.validation.collection import (
    AddCollectionEntryBody, CollectionQuery, UpdateCollectionEntryBody,
)

bp = Blueprint('collection', __name__, url_prefix='/collection')


@bp.route('', methods=['GET'])
@login_required
def list_entries():
    """我的收藏"""
    query = validate_query(CollectionQuery)
    return json_response(collection_service.list_entries(current_user.id, query))


@bp.route('', methods=['POST'])
@login_required
def add_entry():
    """添加到收藏"""
    body = validate_body(AddCollectionEntryBody)
    return json_response(collection_service.add_entry(current_user.id, body), status=201)


@bp.route('/summary')
@login_required
def summary():
    """收藏统计"""
    return json_response(collection_service.summary(current_user.id))


@bp.route('/<entry_id>', methods=['GET'])
@login_required
def get_entry(entry_id):
    """收藏详情"""
    return json_response(collection_service.get_entry(current_user.id, entry_id))


@bp.route('/<entry_id>', methods=['PATCH'])
@login_required
def update_entry(entry_id):
    """修改收藏"""
    body = validate_body(UpdateCollectionEntryBody)
    return json_response(collection_service.update_entry(current_user.id, entry_id, body))


@bp.route('/<entry_id>', methods=['DELETE'])
@login_required
def delete_entry(entry_id):
    """从收藏移除"""
    return json_response(collection_service.delete_entry(current_user.id, entry_id))
