#!/usr/bin/env python3
"""
初始化数据库: 建表并写入字典数据
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loguru import logger

from tcgcollectr import create_app, db
from tcgcollectr.models.lookup import seed_lookups


def init_database(config_name=None):
    """创建所有数据库表 (create_app 已执行一次，这里显式再跑一遍便于单独调用)"""
    app = create_app(config_name)
    with app.app_context():
        db.create_all()
        seed_lookups()
        logger.info(f"数据库初始化完成: {app.config['SQLALCHEMY_DATABASE_URI'].split('@')[-1]}")
    return app


if __name__ == '__main__':
    init_database()
