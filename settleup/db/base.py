# Imports every model so Base.metadata is complete for Alembic and create_all.
from settleup.db.session import Base
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.models.expense import Expense
from settleup.models.expense_share import ExpenseShare
from settleup.models.settlement import Settlement
