"""User model"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.database import Base
from codearena.schemas.enums import UserRole, sql_in


class User(Base):
    """User account; credentials live with the external auth service"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    role = Column(String(20), default=UserRole.PLAYER.value, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    player = relationship("Player", back_populates="user", uselist=False)
    audit_events = relationship("AuditEvent", back_populates="actor")

    __table_args__ = (
        Index('idx_users_role', 'role'),
        CheckConstraint(f"role IN ({sql_in(UserRole)})", name='chk_user_role'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
