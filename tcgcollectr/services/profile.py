"""
用户资料服务
"""
from loguru import logger
from sqlalchemy import func

from tcgcollectr import db
from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.models import CollectionEntry, UserProfile
from tcgcollectr.utils.clock import isoformat, utcnow


def ensure_profile(user_id):
    """首次注册/登录时创建资料，已存在 (包括已删除) 时不做改动"""
    profile = db.session.get(UserProfile, user_id)
    if profile is None:
        profile = UserProfile(id=user_id)
        db.session.add(profile)
        db.session.commit()
        logger.debug(f"已创建用户资料: {user_id}")
    return profile


def _get_active(user_id):
    profile = UserProfile.active(user_id)
    if profile is None:
        raise ServiceError(ErrorCodes.NOT_FOUND, 'Profile not found', 404)
    return profile


def profile_dto(profile):
    total_cards = db.session.query(func.coalesce(func.sum(CollectionEntry.quantity), 0)).filter(
        CollectionEntry.user_id == profile.id
    ).scalar()
    return {
        'id': profile.id,
        'displayName': profile.display_name,
        'avatarUrl': profile.avatar_url,
        'isAdmin': profile.is_admin,
        'createdAt': isoformat(profile.created_at),
        'updatedAt': isoformat(profile.updated_at),
        'totalCards': int(total_cards or 0),
    }


def get_profile(user_id):
    return profile_dto(_get_active(user_id))


def update_profile(user_id, body):
    """只更新请求中出现的字段"""
    profile = _get_active(user_id)

    if 'display_name' in body.model_fields_set:
        profile.display_name = body.display_name
    if 'avatar_url' in body.model_fields_set:
        profile.avatar_url = body.avatar_url

    db.session.commit()
    return profile_dto(profile)


def delete_profile(user_id):
    """软删除"""
    profile = _get_active(user_id)
    profile.deleted_at = utcnow()
    db.session.commit()
    logger.info(f"用户资料已删除: {user_id}")
    return {'message': 'Profile deleted successfully'}


def is_admin(user_id):
    profile = UserProfile.active(user_id)
    return bool(profile and profile.is_admin)
