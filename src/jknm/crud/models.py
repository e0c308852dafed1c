"""Database table definitions for articles, authors, and their association"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlmodel import Field, SQLModel


class ArticleStatus(str, Enum):
    """Editorial lifecycle; articles are soft-deleted by moving to deleted"""
    draft = "draft"
    published = "published"
    archived = "archived"
    deleted = "deleted"


class AuthorType(str, Enum):
    member = "member"
    guest = "guest"


class Article(SQLModel, table=True):
    """A published club article and its content in one of three representations"""
    __tablename__ = "article"
    id: Optional[int] = Field(default=None, primary_key=True)
    old_id: Optional[int] = Field(default=None, sa_column=Column(Integer, unique=True, nullable=True))
    title: str = Field(..., sa_column=Column(String(255), nullable=False))
    slug: str = Field(..., sa_column=Column(String(255), unique=True, nullable=False))
    url: str = Field(..., sa_column=Column(String(255), nullable=False))
    status: ArticleStatus = Field(default=ArticleStatus.draft, index=True, nullable=False)
    content_json: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    content_markdown: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    content_editorjs: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    excerpt: Optional[str] = Field(default=None, sa_column=Column(String(500), nullable=True))
    meta_description: Optional[str] = Field(default=None, sa_column=Column(String(160), nullable=True))
    view_count: int = Field(default=0, nullable=False)
    reading_time: int = Field(default=0, nullable=False, description="Minutes at 200 words per minute")
    content_length: int = Field(default=0, nullable=False, description="Characters of header and paragraph text")
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False, index=True))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    published_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    archived_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    migrated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))


class Author(SQLModel, table=True):
    """A club member (Google account) or a guest known by name only"""
    __tablename__ = "author"
    id: Optional[int] = Field(default=None, primary_key=True)
    author_type: AuthorType = Field(default=AuthorType.guest, nullable=False)
    name: str = Field(..., sa_column=Column(String(255), nullable=False))
    google_id: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    email: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    image: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))


class ArticleAuthor(SQLModel, table=True):
    """Ordered many-to-many association between articles and authors"""
    __tablename__ = "article_author"
    article_id: int = Field(foreign_key="article.id", primary_key=True)
    author_id: int = Field(foreign_key="author.id", primary_key=True)
    order: int = Field(default=0, nullable=False, description="Byline position, ascending")
