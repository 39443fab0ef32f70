"""
后台任务 - 不等待结果、失败只记录日志的旁路操作 (统计事件、缓存写入)
"""
from concurrent.futures import ThreadPoolExecutor

from flask import current_app
from loguru import logger


class TaskDispatcher:
    """
    旁路任务分发器

    任务在独立的应用上下文中执行，异常被记录后丢弃，永远不会影响请求结果。
    eager=True 时在当前线程内同步执行 (测试环境)
    """

    def __init__(self, max_workers=4, eager=False):
        self.eager = eager
        self._executor = None if eager else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='tcgcollectr-bg'
        )

    def submit(self, app, fn, *args, **kwargs):
        if self.eager:
            _run_detached(app, fn, args, kwargs)
            return None
        return self._executor.submit(_run_detached, app, fn, args, kwargs)

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


def _run_detached(app, fn, args, kwargs):
    name = getattr(fn, '__name__', repr(fn))
    try:
        with app.app_context():
            fn(*args, **kwargs)
    except Exception as e:
        logger.warning(f"后台任务失败 {name}: {e}")


def dispatch(fn, *args, **kwargs):
    """提交旁路任务 (需在应用上下文中调用)"""
    app = current_app._get_current_object()
    return app.extensions['task_dispatcher'].submit(app, fn, *args, **kwargs)
