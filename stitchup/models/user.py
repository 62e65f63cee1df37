import sqlalchemy as sa
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB

from stitchup.core.database import Base

JSONType = JSONB().with_variant(sa.JSON(), "sqlite")


class User(Base):
    __tablename__ = "users"

    # Same value as the identity uid for accounts created through signup.
    id = Column(String(64), primary_key=True)
    uid = Column(String(64), nullable=True, index=True)
    phone = Column(String(20), nullable=True, index=True)

    role = Column(String(20), default="customer", nullable=False)  # customer | tailor
    name = Column(String(120), nullable=True)
    full_name = Column(String(120), nullable=True)
    address = Column(Text, nullable=True)
    about = Column(Text, nullable=True)

    # Tailor profile
    rating = Column(Float, nullable=True)
    reviews_count = Column(Integer, default=0, nullable=False)
    years_exp = Column(Integer, nullable=True)
    shop_photo_url = Column(String(500), nullable=True)
    banner_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    is_currently_chatting = Column(Boolean, default=False, nullable=False)
    current_orders = Column(Integer, default=0, nullable=False)
    heavy_tasks = Column(Integer, default=0, nullable=False)
    light_tasks = Column(Integer, default=0, nullable=False)
    distance_km = Column(Float, default=0, nullable=False)

    # Rate card: {"Shirt - Hemming": 150, ...}
    pricing = Column(JSONType, nullable=True)
    price_from = Column(Numeric(10, 2), default=0, nullable=False)
    skills = Column(JSONType, nullable=True)
    hours = Column(JSONType, nullable=True)
    kyc = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.name or ("Tailor" if self.role == "tailor" else "Customer")
