# src/backend/models/user.py
from datetime import date

from sqlalchemy import String, Date, CHAR, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from src.backend.utils.database import Base
from src.backend.utils.timezone import today_local

class User(Base):
    __tablename__ = "user_info"

    login_id: Mapped[str] = mapped_column(String(50), primary_key=True, index=True)
    role_id: Mapped[str] = mapped_column(String(2), ForeignKey("roles.role_id"), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(CHAR(1), default="A")    # A = active
    create_dt: Mapped[date] = mapped_column(
        Date,
        default=today_local,
        nullable=False,
    )
