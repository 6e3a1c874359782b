"""
سكريبت إنشاء قاعدة البيانات والمستخدم الإداري الأول
"""
import argparse
import asyncio
import uuid

from sqlalchemy import select

from app.database import engine, Base, SessionLocal
from app.models import User
from app.core.constants import UserRole
from app.core.security import create_access_token


async def init_database(reset: bool = False):
    """إنشاء الجداول"""
    print("🔄 جاري إنشاء الجداول...")

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    print("✅ تم إنشاء الجداول بنجاح")


async def create_admin_user(principal_id: uuid.UUID, full_name: str):
    """إنشاء مستخدم إدارة مرتبط بمعرّف الهوية لدى مزود المصادقة"""
    async with SessionLocal() as session:
        result = await session.execute(
            select(User).where(User.id == principal_id)
        )
        if result.scalar_one_or_none():
            print("⚠️  هذا المستخدم موجود بالفعل")
            return

        admin = User(id=principal_id, full_name=full_name, role=UserRole.ADMIN)
        session.add(admin)
        await session.commit()

    token = create_access_token({"sub": str(principal_id), "role": UserRole.ADMIN.value})
    print("✅ تم إنشاء مستخدم الإدارة:")
    print(f"   🆔 المعرّف: {principal_id}")
    print(f"   🔑 رمز تطوير: {token}")


async def main():
    parser = argparse.ArgumentParser(description="Initialize the SafeFood database")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    parser.add_argument("--admin-id", type=uuid.UUID, default=None)
    parser.add_argument("--admin-name", default="مدير النظام")
    args = parser.parse_args()

    await init_database(reset=args.reset)
    if args.admin_id:
        await create_admin_user(args.admin_id, args.admin_name)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
