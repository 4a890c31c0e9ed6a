import uuid
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.sql import func
from settleup.db.session import Base

SETTLEMENT_METHODS = ("manual", "in_person", "online")

class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    payer_member_id = Column(String(36), ForeignKey("group_members.id", ondelete="CASCADE"), nullable=False)
    receiver_member_id = Column(String(36), ForeignKey("group_members.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String, nullable=False, server_default="manual")
    status = Column(String, nullable=False, server_default="completed")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
