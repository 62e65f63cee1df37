from sqlalchemy import Column, DateTime, Integer, String, func

from stitchup.core.database import Base


class OtpChallenge(Base):
    __tablename__ = "otp_challenges"

    id = Column(String(32), primary_key=True)  # verification id handed to the client
    phone = Column(String(20), nullable=False, index=True)
    code_hash = Column(String(100), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
