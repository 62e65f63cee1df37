from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from stitchup.core.database import Base


class Enquiry(Base):
    __tablename__ = "enquiries"

    # "{customer_id}_{tailor_id}"
    id = Column(String(160), primary_key=True)

    customer_id = Column(String(64), nullable=False, index=True)
    customer_name = Column(String(120), default="", nullable=False)
    tailor_id = Column(String(64), nullable=False, index=True)
    tailor_name = Column(String(120), default="", nullable=False)

    # NULL = open / accepted / rejected
    status = Column(String(20), nullable=True)

    last_updated = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    messages = relationship(
        "EnquiryMessage",
        back_populates="enquiry",
        order_by="EnquiryMessage.seq",
        cascade="all, delete-orphan",
    )


class EnquiryMessage(Base):
    __tablename__ = "enquiry_messages"

    # Server-assigned ordinal; display order within a conversation.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    enquiry_id = Column(String(160), ForeignKey("enquiries.id"), nullable=False, index=True)

    client_id = Column(BigInteger, nullable=False)
    sender = Column(String(20), nullable=False)  # customer | tailor | system
    type = Column(String(20), default="plain", nullable=False)  # plain | pricing | rejection | system | voice
    text = Column(Text, default="", nullable=False)

    pricing_service = Column(String(160), nullable=True)
    pricing_price = Column(Numeric(10, 2), nullable=True)
    reason = Column(Text, nullable=True)
    order_id = Column(String(64), nullable=True)
    audio_url = Column(String(500), nullable=True)
    duration_seconds = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)

    enquiry = relationship("Enquiry", back_populates="messages")


Index("ix_enquiries_tailor_last_updated", Enquiry.tailor_id, Enquiry.last_updated)
Index("ix_enquiries_customer_last_updated", Enquiry.customer_id, Enquiry.last_updated)
