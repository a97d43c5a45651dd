from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Table, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base

class_students = Table(
    "class_students",
    Base.metadata,
    Column("class_id", Integer, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class ClassSchedule(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    grade = Column(Integer, nullable=False)  # 6..12
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # relationship
    sessions = relationship(
        "ClassSession",
        back_populates="class_schedule",
        cascade="all, delete-orphan",
        order_by="ClassSession.day_of_week",
    )
    cancellations = relationship(
        "ClassCancellation",
        back_populates="class_schedule",
        cascade="all, delete-orphan",
        order_by="ClassCancellation.cancelled_on",
    )
    students = relationship("User", secondary=class_students, back_populates="classes")
