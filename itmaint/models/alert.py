from datetime import date
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from itmaint.db.base import Base, TimestampMixin


class Alert(Base, TimestampMixin):
    __tablename__ = "alerts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    intervention_id = Column(Uuid, ForeignKey("interventions.id", ondelete="CASCADE"), nullable=False, index=True)
    alert_date = Column(Date, default=date.today, nullable=False)
    sent = Column(Boolean, default=False, nullable=False, index=True)
    sent_at = Column(DateTime, nullable=True)

    intervention = relationship("Intervention", back_populates="alerts")
