from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(254), unique=True, index=True, nullable=False)
    password_digest = Column(String(255), nullable=False)
    gender = Column(String(10), nullable=False)
    mobile = Column(String(20), nullable=True)
    bio = Column(Text, nullable=True)
    profile_image = Column(String(500), nullable=True)
    cover_image = Column(String(500), nullable=True)

    # Lists of user_id values; always reassigned, never mutated in place
    following = Column(JSON, nullable=False, default=list)
    followers = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=func.now())

class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, index=True, nullable=False)
    text = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    videos = Column(JSON, nullable=False, default=list)
    is_public = Column(Boolean, nullable=False, default=True)
    likes = Column(JSON, nullable=False, default=list)
    deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
