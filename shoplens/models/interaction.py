from sqlalchemy import BigInteger, Column, Index, Integer, String, Float, DateTime, text

from .base import Base

# Only created under the merge policy; the upsert's ON CONFLICT target must match it exactly
MERGE_KEY_INDEX_NAME = "uq_user_interactions_merge_key"
MERGE_CONFLICT_TARGET = "(session_id, interaction_type, (coalesce(product_id, '')), (coalesce(search_query, '')))"


class UserInteractionDB(Base):
    __tablename__ = 'user_interactions'
    __table_args__ = (
        Index("ix_user_interactions_timestamp", "timestamp"),
        Index("ix_user_interactions_type", "interaction_type"),
        Index(
            MERGE_KEY_INDEX_NAME,
            "session_id",
            "interaction_type",
            text("coalesce(product_id, '')"),
            text("coalesce(search_query, '')"),
            unique=True,
        ),
    )

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    session_id = Column(String(255), nullable=False)
    interaction_type = Column(String(20), nullable=False)  # search | view | click | time_spend
    product_id = Column(String(100))
    search_query = Column(String(500))
    time_spend = Column(Float)  # seconds, time_spend rows only
    count = Column(Integer, nullable=False, server_default=text("1"))
    timestamp = Column(DateTime(timezone=True), nullable=False)
