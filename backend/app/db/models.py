from sqlalchemy import Column, DateTime, Float, Index, Integer, JSON, Text, text
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import JSONB

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (tests run on SQLite).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

STATUS_ACTIVE = "active"
STATUS_ARCHIVED = "archived"
STATUS_DELETED = "deleted"
ANALYSIS_STATUSES = (STATUS_ACTIVE, STATUS_ARCHIVED, STATUS_DELETED)


class Analysis(Base):
    __tablename__ = "saved_analyses"
    id = Column(Text, primary_key=True)
    status = Column(Text, nullable=False, default=STATUS_ACTIVE, server_default=text("'active'"))  # active|archived|deleted
    created_at = Column(DateTime(timezone=True), nullable=False)
    session_id = Column(Text)
    session_name = Column(Text)
    total_impressions = Column(Integer, default=0)
    total_clicks = Column(Integer, default=0)
    total_cost = Column(Float, default=0)
    average_ctr = Column(Float, default=0)
    average_cpc = Column(Float, default=0)
    average_cpa = Column(Float, default=0)
    dealership_context = Column(JSONDocument)
    analytics_data = Column(JSONDocument)
    ai_insights = Column(JSONDocument)
    __table_args__ = (Index("idx_saved_analyses_status_created", "status", "created_at"),)
