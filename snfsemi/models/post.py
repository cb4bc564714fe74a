"""
오퍼시트(게시글) 및 첨부파일 모델
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, LargeBinary, ForeignKey

from snfsemi.core.database import Base, utcnow


class Post(Base):
    """오퍼시트 모델"""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(300), nullable=False)
    # 초기 버전의 본문 컬럼. 더 이상 쓰지 않지만 NOT NULL 이라 빈 문자열로 채운다
    content = Column(Text, nullable=False, default="", server_default="")
    is_published = Column(Boolean, nullable=False, default=True, index=True)
    offer_json = Column(Text)
    offer_note = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title})>"


class PostAttachment(Base):
    """오퍼 첨부파일 (바이너리는 DB에 그대로 저장)"""

    __tablename__ = "post_attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    mime_type = Column(String(127), nullable=False, default="application/octet-stream")
    size_bytes = Column(Integer, nullable=False, default=0)
    data = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<PostAttachment(id={self.id}, post_id={self.post_id}, filename={self.filename})>"
