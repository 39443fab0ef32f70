"""
导入任务模型 (由外部的每日导入写入，本应用只读)
"""
from uuid import uuid4

from tcgcollectr import db
from tcgcollectr.utils.clock import isoformat, utcnow


class ImportJob(db.Model):
    """每日 CSV 导入任务记录"""
    __tablename__ = 'import_jobs'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid4()))

    # 任务类型: cards / prices / sets
    job_type = db.Column(db.String(50), nullable=False)

    # 状态: pending / running / completed / failed
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)

    # 处理统计
    total_records = db.Column(db.Integer, nullable=False, default=0)
    success_count = db.Column(db.Integer, nullable=False, default=0)
    failure_count = db.Column(db.Integer, nullable=False, default=0)

    # 失败明细
    error_details = db.Column(db.JSON)

    # 触发方式 (cron / 管理员 id)
    triggered_by = db.Column(db.String(64))

    started_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f'<ImportJob {self.job_type} {self.status}>'

    def to_dict(self, detail=False):
        data = {
            'id': self.id,
            'jobType': self.job_type,
            'status': self.status,
            'totalRecords': self.total_records,
            'successCount': self.success_count,
            'failureCount': self.failure_count,
            'createdAt': isoformat(self.created_at),
            'startedAt': isoformat(self.started_at),
            'completedAt': isoformat(self.completed_at),
        }
        if detail:
            data['errorDetails'] = self.error_details
            data['triggeredBy'] = self.triggered_by
        return data
