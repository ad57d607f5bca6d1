from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from searchtool.database import Base

class Consultant(Base):
    __tablename__ = "consultants"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=True, index=True)
    summary = Column(Text, nullable=True)
    img = Column(String, nullable=True)

    expertise = Column(JSON, default=list)
    emails = Column(JSON, default=list)
    phones = Column(JSON, default=list)
    qualifications = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    sectors = Column(JSON, default=list)
    associations = Column(JSON, default=list)

    media = Column(JSON, nullable=True)       # {"photo": url, "cv": {url, filename, mime, size}}
    experience = Column(JSON, default=list)   # [{role, org, location, start, end, highlights}]
    projects = Column(JSON, default=list)     # [{title, client, funders}]

    # Flattened search blob, rebuilt on every write
    search_text = Column(Text, nullable=True)
    search_keywords = Column(JSON, default=list)

    # Cached aggregate over reviews, always recomputed in full
    rating_avg = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reviews = relationship(
        "Review",
        back_populates="consultant",
        cascade="all, delete-orphan",
        order_by="Review.id",
        lazy="selectin",
    )

class Review(Base):
    __tablename__ = "consultant_reviews"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    consultant_id = Column(Integer, ForeignKey("consultants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_name = Column(String, nullable=True)

    # Legacy fields, kept for reviews created before the rubric existed
    rating = Column(Integer, nullable=True)   # 1–5
    comment = Column(Text, nullable=True)

    answers = Column(JSON, nullable=True)     # question id -> 1..5
    overall_rating = Column(Float, nullable=True)  # cached computed score, 0–5

    note = Column(Text, nullable=True)
    project_name = Column(String, nullable=True)
    project_date = Column(String, nullable=True)  # e.g. 2025-01-15
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    consultant = relationship("Consultant", back_populates="reviews")
