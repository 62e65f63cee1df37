from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, String

from stitchup.core.database import Base


class Order(Base):
    __tablename__ = "orders"

    # "order_{creation ms}"
    id = Column(String(64), primary_key=True)
    enquiry_id = Column(String(160), ForeignKey("enquiries.id"), nullable=True, index=True)

    customer_id = Column(String(64), nullable=False, index=True)
    customer_name = Column(String(120), default="", nullable=False)
    tailor_id = Column(String(64), nullable=False, index=True)
    tailor_name = Column(String(120), default="", nullable=False)

    service = Column(String(160), default="Tailoring Service", nullable=False)
    price = Column(Numeric(10, 2), default=0, nullable=False)

    # working / ready / satisfied / Not Satisfied / rejected ...
    status = Column(String(40), default="working", nullable=False)
    work_type = Column(String(10), default="light", nullable=False)  # light | heavy

    start_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    last_update = Column(DateTime(timezone=True), nullable=False)


Index("ix_orders_tailor_created", Order.tailor_id, Order.created_at)
Index("ix_orders_customer_created", Order.customer_id, Order.created_at)
