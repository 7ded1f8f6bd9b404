from sqlalchemy import Column, DateTime, Float, String, Text, func

from database import Base


class LoanRequest(Base):
    __tablename__ = "loan_requests"

    id = Column(String(64), primary_key=True, index=True)
    applicant_name = Column(String(256), nullable=False)
    # Lookup key for the applicant, not unique: one row per request
    mobile_number = Column(String(10), nullable=False, index=True)
    pan_number = Column(String(10), nullable=False)
    aadhaar_number = Column(String(12), nullable=False)
    # 0 means profile created, no amount requested yet
    amount = Column(Float, nullable=False, default=0)
    purpose = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # Doubles as the disbursement instant once status is "disbursed"
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
