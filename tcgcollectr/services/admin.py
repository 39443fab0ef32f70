"""
管理员只读接口 - 导入任务状态
"""
from flask import current_app
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from tcgcollectr import db
from tcgcollectr.errors import ErrorCodes, ServiceError
from tcgcollectr.models import ImportJob
from tcgcollectr.services.profile import is_admin


def require_admin(user_id):
    if not is_admin(user_id):
        raise ServiceError(ErrorCodes.FORBIDDEN, 'Admin access required', 403)


def _status_unavailable(e):
    db.session.rollback()
    logger.error(f"导入任务查询失败: {e.__class__.__name__}")
    return ServiceError(ErrorCodes.STATUS_UNAVAILABLE, 'Import status is temporarily unavailable', 503)


def list_import_jobs(query):
    """GET /admin/import-jobs"""
    try:
        q = ImportJob.query
        if query.status:
            q = q.filter(ImportJob.status == query.status)
        if query.job_type:
            q = q.filter(ImportJob.job_type == query.job_type)

        pagination = q.order_by(ImportJob.created_at.desc(), ImportJob.id).paginate(
            page=query.page, per_page=query.page_size,
            max_per_page=current_app.config['MAX_PAGE_SIZE'], error_out=False,
        )
        data = [job.to_dict() for job in pagination.items]
    except SQLAlchemyError as e:
        raise _status_unavailable(e)

    return {
        'data': data,
        'meta': {
            'page': query.page,
            'pageSize': query.page_size,
            'totalItems': pagination.total,
            'totalPages': pagination.pages,
        },
    }


def latest_import_job(job_type=None):
    """GET /admin/import-jobs/latest"""
    try:
        q = ImportJob.query
        if job_type:
            q = q.filter(ImportJob.job_type == job_type)
        job = q.order_by(ImportJob.created_at.desc()).first()
    except SQLAlchemyError as e:
        raise _status_unavailable(e)

    if job is None:
        raise ServiceError(ErrorCodes.NOT_FOUND, 'No import jobs found', 404)
    return job.to_dict(detail=True)
