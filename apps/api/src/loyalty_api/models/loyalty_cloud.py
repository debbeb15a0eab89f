from sqlalchemy import Column, DateTime, JSON, String, Text, func

from loyalty_api.db.base import Base

LOYALTY_CLOUD_STATE_KEY = "loyalty_cloud"


class LoyaltyCloudState(Base):
    """Cached provider credential and mapped program configuration."""

    __tablename__ = "loyalty_cloud_state"

    key = Column(String(64), primary_key=True, default=LOYALTY_CLOUD_STATE_KEY)
    access_token = Column(Text, nullable=True)
    program_config = Column(JSON, nullable=True)
    token_refreshed_at = Column(DateTime(timezone=True), nullable=True)
    config_refreshed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
