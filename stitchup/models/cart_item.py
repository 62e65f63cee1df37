from sqlalchemy import Column, DateTime, Float, Integer, Numeric, String, UniqueConstraint

from stitchup.core.database import Base


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("user_id", "tailor_id", name="uq_cart_items_user_tailor"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    tailor_id = Column(String(64), nullable=False)
    tailor_name = Column(String(120), default="", nullable=False)
    tailor_image = Column(String(500), nullable=True)
    price_from = Column(Numeric(10, 2), default=0, nullable=False)
    distance_km = Column(Float, default=0, nullable=False)
    rating = Column(Float, nullable=True)
    added_at = Column(DateTime(timezone=True), nullable=False)
