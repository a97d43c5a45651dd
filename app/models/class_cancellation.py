from sqlalchemy import Column, Date, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class ClassCancellation(Base):
    __tablename__ = "class_cancellations"
    __table_args__ = (UniqueConstraint("class_id", "cancelled_on", name="uq_class_cancelled_on"),)

    id = Column(Integer, primary_key=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    cancelled_on = Column(Date, nullable=False)

    class_schedule = relationship("ClassSchedule", back_populates="cancellations")
