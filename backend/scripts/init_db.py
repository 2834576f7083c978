#!/usr/bin/env python3
"""
数据库初始化脚本 - 创建所有表，可选创建超级管理员

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --admin-email admin@example.com --admin-password '...'
"""

import argparse
import asyncio
import sys
from pathlib import Path

# 添加项目根目录到路径
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from otpvault.common.base import Base
from otpvault.common.config import SecurityConfig, Settings
from otpvault.common.database import DatabaseManager
from otpvault.domains.admin.service import UserService


async def init_database(admin_email: str = None, admin_password: str = None):
    """初始化数据库 - 创建所有表"""
    settings = Settings()
    # 先校验密钥，密钥无效时不应创建任何数据
    SecurityConfig.from_settings(settings)

    print("🔧 Initializing database...")
    db = DatabaseManager(settings.database_url)
    await db.initialize()
    print("✅ All tables created successfully!")

    print("\n📋 Created tables:")
    for table in sorted(Base.metadata.tables.keys()):
        print(f"  - {table}")

    if admin_email and admin_password:
        async with db.get_session() as session:
            user = await UserService(bcrypt_rounds=settings.bcrypt_rounds).ensure_superadmin(
                session, admin_email, admin_password
            )
        print(f"\n👤 Superadmin: {user.email} ({user.role})")

    await db.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create otpvault tables")
    parser.add_argument("--admin-email")
    parser.add_argument("--admin-password")
    args = parser.parse_args()
    asyncio.run(init_database(args.admin_email, args.admin_password))
