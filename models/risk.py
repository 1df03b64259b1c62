from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from db import Base


class RiskRecord(Base):
    __tablename__ = "risks"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False)
    flow = Column(String, nullable=False)
    status = Column(String, nullable=False)

    likelihood = Column(Numeric(4, 2), nullable=True)
    impact = Column(Numeric(4, 2), nullable=True)
    # written only by services.lifecycle, always from likelihood and impact
    score = Column(Numeric(5, 2), nullable=True)
    level = Column(String, nullable=True)

    severity = Column(String, nullable=True)
    assessment_notes = Column(Text, nullable=True)
    treatment_plan = Column(Text, nullable=True)
    review_date = Column(Date, nullable=True)

    owner_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    reported_by_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    evaluated_by_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    evaluated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = Column(Integer, nullable=False)

    owner = relationship("Account", foreign_keys=[owner_id])
    reported_by = relationship("Account", foreign_keys=[reported_by_id])

    __mapper_args__ = {"version_id_col": version}
