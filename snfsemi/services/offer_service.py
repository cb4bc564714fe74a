"""
오퍼시트(게시글) 저장소 및 첨부파일
"""

from dataclasses import dataclass
from typing import List, Optional
import logging
import mimetypes
import os

from starlette.datastructures import UploadFile
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import defer

from snfsemi.core.database import utcnow
from snfsemi.core.exceptions import AttachmentTooLarge
from snfsemi.models import Post, PostAttachment
from snfsemi.schemas.offer import OfferSheet

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 1024 * 1024


@dataclass
class UploadedFile:
    """폼에서 읽어 들인 첨부파일"""
    filename: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


async def read_upload(upload: UploadFile, limit_bytes: int) -> Optional[UploadedFile]:
    """업로드 필드 하나를 읽는다. 파일을 고르지 않은 빈 칸이면 None, 용량 초과면 AttachmentTooLarge"""
    filename = os.path.basename((upload.filename or "").replace("\\", "/")).strip()
    if not filename:
        return None

    buf = bytearray()
    while True:
        chunk = await upload.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > limit_bytes:
            raise AttachmentTooLarge(filename, limit_bytes)

    mime_type = upload.content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return UploadedFile(filename=filename, mime_type=mime_type, data=bytes(buf))


# ---------------------------------------------------------------------------
# 게시글
# ---------------------------------------------------------------------------

async def list_posts(db: AsyncSession, published_only: bool = True) -> List[Post]:
    """오퍼 목록 (최신순)"""
    stmt = select(Post)
    if published_only:
        stmt = stmt.where(Post.is_published == True)  # noqa: E712
    stmt = stmt.order_by(Post.id.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_post(db: AsyncSession, post_id: int, published_only: bool = False) -> Optional[Post]:
    stmt = select(Post).where(Post.id == post_id)
    if published_only:
        stmt = stmt.where(Post.is_published == True)  # noqa: E712
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_post(
    db: AsyncSession,
    title: str,
    is_published: bool,
    offer: OfferSheet,
    offer_note: str = "",
) -> Post:
    now = utcnow()
    post = Post(
        title=title,
        content="",
        is_published=is_published,
        offer_json=offer.to_json(),
        offer_note=offer_note or "",
        created_at=now,
        updated_at=now,
    )
    db.add(post)
    await db.commit()
    await db.refresh(post)
    logger.info(f"오퍼 생성: post_id={post.id}")
    return post


async def update_post(
    db: AsyncSession,
    post_id: int,
    title: str,
    is_published: bool,
    offer: OfferSheet,
    offer_note: str = "",
) -> Optional[Post]:
    post = await get_post(db, post_id)
    if post is None:
        return None
    post.title = title
    post.is_published = is_published
    post.offer_json = offer.to_json()
    post.offer_note = offer_note or ""
    post.updated_at = utcnow()
    await db.commit()
    await db.refresh(post)
    return post


async def toggle_published(db: AsyncSession, post_id: int) -> Optional[Post]:
    """게시 여부만 뒤집는다 (수정 시각은 항상 갱신)"""
    post = await get_post(db, post_id)
    if post is None:
        return None
    post.is_published = not bool(post.is_published)
    post.updated_at = utcnow()
    await db.commit()
    await db.refresh(post)
    return post


async def delete_post(db: AsyncSession, post_id: int) -> bool:
    """첨부파일을 먼저 지우고 게시글을 지운다 (저장소가 cascade 하지 않음)"""
    await db.execute(delete(PostAttachment).where(PostAttachment.post_id == post_id))
    result = await db.execute(delete(Post).where(Post.id == post_id))
    await db.commit()
    deleted = (result.rowcount or 0) > 0
    if deleted:
        logger.info(f"오퍼 삭제: post_id={post_id}")
    return deleted


def parse_offer(post: Post) -> Optional[OfferSheet]:
    return OfferSheet.from_json(post.offer_json)


# ---------------------------------------------------------------------------
# 첨부파일
# ---------------------------------------------------------------------------

async def add_attachment(db: AsyncSession, post_id: int, file: UploadedFile) -> PostAttachment:
    attachment = PostAttachment(
        post_id=post_id,
        filename=file.filename,
        mime_type=file.mime_type,
        size_bytes=file.size,
        data=file.data,
        created_at=utcnow(),
    )
    db.add(attachment)
    await db.commit()
    await db.refresh(attachment)
    logger.info(f"첨부 추가: post_id={post_id}, attachment_id={attachment.id}, size={file.size}")
    return attachment


async def list_attachments(db: AsyncSession, post_id: int) -> List[PostAttachment]:
    """첨부 목록 (본문 바이너리는 읽지 않음)"""
    result = await db.execute(
        select(PostAttachment)
        .options(defer(PostAttachment.data))
        .where(PostAttachment.post_id == post_id)
        .order_by(PostAttachment.id)
    )
    return list(result.scalars().all())


async def count_attachments(db: AsyncSession, post_id: int) -> int:
    result = await db.execute(
        select(func.count(PostAttachment.id)).where(PostAttachment.post_id == post_id)
    )
    return int(result.scalar_one())


async def get_attachment(db: AsyncSession, attachment_id: int) -> Optional[PostAttachment]:
    result = await db.execute(select(PostAttachment).where(PostAttachment.id == attachment_id))
    return result.scalar_one_or_none()


async def delete_attachment(db: AsyncSession, attachment_id: int) -> Optional[int]:
    """첨부 하나 삭제. 돌아갈 편집 화면을 위해 소유 게시글 id를 반환 (없으면 None)"""
    result = await db.execute(
        select(PostAttachment.post_id).where(PostAttachment.id == attachment_id)
    )
    post_id = result.scalar_one_or_none()
    if post_id is None:
        return None
    await db.execute(delete(PostAttachment).where(PostAttachment.id == attachment_id))
    await db.commit()
    logger.info(f"첨부 삭제: post_id={post_id}, attachment_id={attachment_id}")
    return post_id
