"""
User identity repository: maps Telegram accounts to attestation roles.
"""
import aiosqlite
from typing import Optional, List, Dict
import logging

from ...services.models import Caller, Role

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user-related database operations"""
    
    def __init__(self, db_path: str):
        self.db_path = db_path
    
    async def ensure_user(self, telegram_id: int, full_name: str = "") -> bool:
        """
        Ensure user exists in database.
        Returns True if user is new, False if already exists.
        """
        async with aiosqlite.connect(self.db_path) as db:
            cur = await db.execute(
                "SELECT 1 FROM users WHERE telegram_id=?",
                (telegram_id,)
            )
            row = await cur.fetchone()
            
            if row:
                return False
            
            await db.execute(
                "INSERT INTO users(telegram_id, role, full_name) VALUES (?, ?, ?)",
                (telegram_id, Role.EMPLOYEE.value, full_name)
            )
            await db.commit()
            return True
    
    async def get_user(self, telegram_id: int) -> Optional[Dict]:
        """Get a user's identity row as a dict"""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cur = await db.execute(
                "SELECT telegram_id, email, role, full_name FROM users WHERE telegram_id=?",
                (telegram_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None

    async def set_identity(self, telegram_id: int, email: str, role: Role) -> None:
        """Link a Telegram account to an email and role, creating it if needed"""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """INSERT INTO users(telegram_id, email, role) VALUES (?, ?, ?)
                ON CONFLICT(telegram_id) DO UPDATE SET email=excluded.email, role=excluded.role""",
                (telegram_id, email.strip().lower(), role.value)
            )
            await db.commit()
        logger.info(f"🔑 User {telegram_id} linked as {role.value} <{email}>")

    async def list_users(self) -> List[Dict]:
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cur = await db.execute(
                "SELECT telegram_id, email, role, full_name FROM users ORDER BY telegram_id"
            )
            return [dict(row) for row in await cur.fetchall()]

    async def get_caller(self, telegram_id: int, superadmins=frozenset()) -> Optional[Caller]:
        """
        Resolve the dashboard caller for a Telegram account.

        Superadmins are always admins; everyone else needs a linked email.
        """
        user = await self.get_user(telegram_id)
        email = (user or {}).get("email") or ""

        if telegram_id in superadmins:
            return Caller(role=Role.ADMIN, email=email)

        if not user or not email:
            return None
        return Caller(role=Role.parse(user.get("role")), email=email)
