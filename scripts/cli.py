#!/usr/bin/env python3
"""
tcgcollectr 运维 CLI

用法:
    python cli.py init-db                          # 建表并写入字典数据
    python cli.py seed-lookups                     # 只写入字典数据
    python cli.py create-admin --email a@b.com     # 把本地账号设为管理员
    python cli.py prune-cache                      # 删除过期的目录缓存
"""
import sys
import os
import argparse

# 设置路径
script_dir = os.path.dirname(os.path.abspath(__file__))
project_dir = os.path.dirname(script_dir)
sys.path.insert(0, project_dir)

from loguru import logger


def _app(args):
    from tcgcollectr import create_app
    return create_app(args.env)


def cmd_init_db(args):
    """建表并写入字典数据"""
    from init_db import init_database
    init_database(args.env)


def cmd_seed_lookups(args):
    """写入字典数据"""
    from tcgcollectr.models.lookup import seed_lookups

    with _app(args).app_context():
        seed_lookups()
        logger.info("字典数据已写入")


def cmd_create_admin(args):
    """把本地账号设为管理员"""
    from tcgcollectr import db
    from tcgcollectr.models import User
    from tcgcollectr.services.profile import ensure_profile

    with _app(args).app_context():
        user = User.query.filter_by(email=args.email.strip().lower()).first()
        if user is None:
            logger.error(f"账号不存在: {args.email}")
            return 1

        profile = ensure_profile(user.id)
        profile.is_admin = True
        db.session.commit()
        logger.info(f"已设为管理员: {user.email}")
    return 0


def cmd_prune_cache(args):
    """删除过期的目录缓存"""
    from tcgcollectr.services.catalog_cache import prune_expired

    with _app(args).app_context():
        prune_expired()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='tcgcollectr 管理工具',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--env', type=str, default=None,
                        choices=['development', 'production', 'testing'], help='配置环境 (默认读取 FLASK_ENV)')
    subparsers = parser.add_subparsers(dest='command', help='子命令')

    init_parser = subparsers.add_parser('init-db', help='初始化数据库')
    init_parser.set_defaults(func=cmd_init_db)

    seed_parser = subparsers.add_parser('seed-lookups', help='写入字典数据')
    seed_parser.set_defaults(func=cmd_seed_lookups)

    admin_parser = subparsers.add_parser('create-admin', help='设置管理员')
    admin_parser.add_argument('--email', type=str, required=True, help='本地账号邮箱')
    admin_parser.set_defaults(func=cmd_create_admin)

    prune_parser = subparsers.add_parser('prune-cache', help='清理过期缓存')
    prune_parser.set_defaults(func=cmd_prune_cache)

    args = parser.parse_args(argv)

    if args.command:
        return args.func(args) or 0
    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
