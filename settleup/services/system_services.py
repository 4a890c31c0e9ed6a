import logging
from settleup.db.session import engine
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.models.group import Group
from settleup.models.expense import Expense
from settleup.models.settlement import Settlement

logger = logging.getLogger(__name__)

async def check_db_service():
    try:
        async with engine.connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return {"db": True, "message": "Database is connected"}
    except SQLAlchemyError as e:
        logger.error("Database check failed: %s", e)
        return {"db": False, "error": str(e)}

async def system_health():
    return {
        "status": "ok"
    }

async def system_metrics(db: AsyncSession):
    groups_q = select(func.count(Group.id))
    expenses_q = select(func.count(Expense.id)).where(
        Expense.is_deleted == False
    )
    settlements_q = select(func.count(Settlement.id)).where(
        Settlement.status == "completed"
    )

    return {
        "groups": (await db.execute(groups_q)).scalar(),
        "expenses": (await db.execute(expenses_q)).scalar(),
        "settlements": (await db.execute(settlements_q)).scalar()
    }
