from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
import enum
from tasktracker.core.timeutils import utcnow
from tasktracker.db.base import Base


class UserRole(str, enum.Enum):
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"
    # Ids are never handed out twice, even after the newest row is deleted
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String(254), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False, index=True)
    email_confirmed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Back-reference to the managing principal; not a foreign key so that
    # deleting a manager leaves the id dangling instead of cascading.
    manager_id = Column(Integer, nullable=True, index=True)

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r} role={self.role.value}>"
