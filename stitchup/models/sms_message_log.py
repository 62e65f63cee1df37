from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func

from stitchup.core.database import Base


class SmsMessageLog(Base):
    __tablename__ = "sms_message_log"

    id = Column(Integer, primary_key=True)
    purpose = Column(String(40), nullable=False)  # enquiry_created | otp
    to_phone = Column(String(20), nullable=True)
    reference_id = Column(String(160), nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)  # sent | failed | skipped
    error = Column(Text, nullable=True)
    provider_response = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


Index("ix_sms_message_log_purpose_created", SmsMessageLog.purpose, SmsMessageLog.created_at)
