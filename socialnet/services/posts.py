import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..core.exceptions import ForbiddenException, NotFoundException, StorageUnavailable
from ..core.security import Identity

logger = logging.getLogger(__name__)


class PostService:
    """Post creation, soft deletion and the public exploration listing."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, post_id: int) -> models.Post:
        # Soft-deleted posts stay reachable by id
        post = self.db.query(models.Post).filter(models.Post.id == post_id).first()
        if post is None:
            raise NotFoundException("Post not found")
        return post

    def upload(self, caller: Identity, data: schemas.PostCreate) -> models.Post:
        post = models.Post(
            author_id=caller.user_id,
            text=data.text,
            images=list(data.images),
            videos=list(data.videos),
            is_public=data.is_public,
            likes=[],
            deleted=False,
        )
        self.db.add(post)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"upload failed for user {caller.user_id}: {e}")
            raise StorageUnavailable("Error uploading post")
        self.db.refresh(post)
        logger.info(f"upload: user {caller.user_id} created post {post.id}")
        return post

    def delete(self, caller: Identity, post_id: int) -> models.Post:
        post = self.get(post_id)
        if post.author_id != caller.user_id:
            raise ForbiddenException("You are not authorized to delete this post")

        post.deleted = True
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"delete of post {post_id} failed: {e}")
            raise StorageUnavailable("Error deleting post")
        logger.info(f"delete: user {caller.user_id} soft-deleted post {post_id}")
        return post

    def explore(self, skip: int = 0, limit: int = 20) -> List[models.Post]:
        return (
            self.db.query(models.Post)
            .filter(models.Post.is_public.is_(True), models.Post.deleted.is_(False))
            .order_by(models.Post.created_at.desc(), models.Post.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
