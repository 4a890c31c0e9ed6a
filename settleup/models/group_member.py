import uuid
from sqlalchemy import Column, ForeignKey, String, DateTime, UniqueConstraint, func
from settleup.db.session import Base
from sqlalchemy.orm import relationship

class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "email", name="uq_group_member_email"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    # null until an invited member signs in
    user_id = Column(String, nullable=True, index=True)
    display_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="members")
