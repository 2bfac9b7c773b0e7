from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class LoginHistory(Base):
    """Append-only audit trail of login attempts."""

    __tablename__ = "login_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    login_time = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    is_successful = Column(Boolean, default=True, nullable=False)
    ip_address = Column(String(50), nullable=True)
    device_info = Column(Text, nullable=True)

    user = relationship("User", back_populates="login_history")
