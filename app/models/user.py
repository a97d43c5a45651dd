from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.orm import relationship
from datetime import datetime
from app.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(100))
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False)  # student / teacher / admin
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    classes = relationship("ClassSchedule", secondary="class_students", back_populates="students")
