"""
Follower/following graph and post likes.

Follow and unfollow touch two account records: the caller's ``following``
list is written first, then the peer's ``followers`` list. Both writes are
committed in one transaction. ``audit`` and ``reconcile`` exist for records
written before that, or by anything that bypasses this module.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.exceptions import (
    AlreadyFollowing,
    AlreadyLiked,
    NotFollowing,
    NotFoundException,
    NotLiked,
    StorageUnavailable,
    ValidationException,
)
from ..core.security import Identity

logger = logging.getLogger(__name__)

MISSING_FOLLOWER = "followers"
MISSING_FOLLOWING = "following"


@dataclass(frozen=True)
class AsymmetricEdge:
    """follower_id -> followee_id is recorded on one side only.

    ``missing`` names the list that lacks the entry: ``"followers"`` on the
    followee or ``"following"`` on the follower.
    """
    follower_id: int
    followee_id: int
    missing: str


class SocialGraphManager:
    def __init__(self, db: Session):
        self.db = db

    def _lock_accounts(self, *user_ids: int) -> Dict[int, models.Account]:
        # Row locks are taken in user_id order so two opposite follows cannot deadlock
        rows = (
            self.db.query(models.Account)
            .filter(models.Account.user_id.in_(sorted(set(user_ids))))
            .order_by(models.Account.user_id)
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {row.user_id: row for row in rows}

    def _get_account(self, user_id: int) -> models.Account:
        account = self.db.query(models.Account).filter(models.Account.user_id == user_id).first()
        if account is None:
            raise NotFoundException("User not found")
        return account

    def _get_post(self, post_id: int, lock: bool = False) -> models.Post:
        query = self.db.query(models.Post).filter(models.Post.id == post_id)
        if lock:
            query = query.with_for_update().populate_existing()
        post = query.first()
        if post is None:
            raise NotFoundException("Post not found")
        return post

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} failed: {e}")
            raise StorageUnavailable(f"Error during {action}")

    def _resolve(self, user_ids: List[int]) -> List[models.Account]:
        if not user_ids:
            return []
        rows = self.db.query(models.Account).filter(models.Account.user_id.in_(user_ids)).all()
        by_id = {row.user_id: row for row in rows}
        # Identifiers without an account are dropped
        return [by_id[uid] for uid in user_ids if uid in by_id]

    def follow(self, caller: Identity, target_user_id: int):
        if target_user_id == caller.user_id:
            raise ValidationException("You cannot follow yourself")

        accounts = self._lock_accounts(caller.user_id, target_user_id)
        me = accounts.get(caller.user_id)
        if me is None:
            raise NotFoundException("User profile not found")
        target = accounts.get(target_user_id)
        if target is None:
            raise NotFoundException("User not found")
        if target_user_id in me.following:
            raise AlreadyFollowing()

        logger.info(f"follow {me.user_id} -> {target_user_id}: add to {me.user_id}.following, {target_user_id}.followers")
        me.following = me.following + [target_user_id]
        if me.user_id not in target.followers:
            target.followers = target.followers + [me.user_id]
        self._commit("follow")

    def unfollow(self, caller: Identity, target_user_id: int):
        accounts = self._lock_accounts(caller.user_id, target_user_id)
        me = accounts.get(caller.user_id)
        if me is None:
            raise NotFoundException("User profile not found")
        if target_user_id not in me.following:
            raise NotFollowing()

        logger.info(f"unfollow {me.user_id} -> {target_user_id}: remove from {me.user_id}.following, {target_user_id}.followers")
        me.following = [uid for uid in me.following if uid != target_user_id]
        target = accounts.get(target_user_id)
        if target is None:
            logger.warning(f"unfollow: account {target_user_id} no longer exists, only {me.user_id}.following updated")
        else:
            target.followers = [uid for uid in target.followers if uid != me.user_id]
        self._commit("unfollow")

    def like(self, caller: Identity, post_id: int):
        post = self._get_post(post_id, lock=True)
        if caller.user_id in post.likes:
            raise AlreadyLiked()
        post.likes = post.likes + [caller.user_id]
        logger.info(f"like: user {caller.user_id} liked post {post_id}")
        self._commit("like")

    def unlike(self, caller: Identity, post_id: int):
        post = self._get_post(post_id, lock=True)
        if caller.user_id not in post.likes:
            raise NotLiked()
        post.likes = [uid for uid in post.likes if uid != caller.user_id]
        logger.info(f"unlike: user {caller.user_id} unliked post {post_id}")
        self._commit("unlike")

    def list_followers(self, user_id: int) -> List[models.Account]:
        return self._resolve(self._get_account(user_id).followers)

    def list_following(self, user_id: int) -> List[models.Account]:
        return self._resolve(self._get_account(user_id).following)

    def list_likers(self, post_id: int) -> List[models.Account]:
        return self._resolve(self._get_post(post_id).likes)

    def audit(self) -> List[AsymmetricEdge]:
        """List every follow relationship recorded on one side only."""
        rows = self.db.query(
            models.Account.user_id, models.Account.following, models.Account.followers
        ).all()
        following: Dict[int, Set[int]] = {row.user_id: set(row.following) for row in rows}
        followers: Dict[int, Set[int]] = {row.user_id: set(row.followers) for row in rows}

        edges = []
        for follower_id in sorted(following):
            for followee_id in sorted(following[follower_id]):
                if followee_id not in followers:
                    logger.warning(f"dangling reference: {follower_id}.following lists missing account {followee_id}")
                elif follower_id not in followers[followee_id]:
                    edges.append(AsymmetricEdge(follower_id, followee_id, MISSING_FOLLOWER))
        for followee_id in sorted(followers):
            for follower_id in sorted(followers[followee_id]):
                if follower_id not in following:
                    logger.warning(f"dangling reference: {followee_id}.followers lists missing account {follower_id}")
                elif followee_id not in following[follower_id]:
                    edges.append(AsymmetricEdge(follower_id, followee_id, MISSING_FOLLOWING))

        for edge in edges:
            logger.warning(f"asymmetric follow {edge.follower_id} -> {edge.followee_id}: missing from {edge.missing}")
        return edges

    def reconcile(self) -> List[AsymmetricEdge]:
        """Repair asymmetric edges; each ``following`` list is authoritative."""
        return self.repair(self.audit())

    def repair(self, edges: List[AsymmetricEdge]) -> List[AsymmetricEdge]:
        """Re-check each edge under row locks and repair the ones still one-sided.

        Edges fixed meanwhile by a follow or unfollow are skipped.
        """
        if not edges:
            return []

        user_ids = set()
        for edge in edges:
            user_ids.update((edge.follower_id, edge.followee_id))
        accounts = self._lock_accounts(*user_ids)

        repaired = []
        for edge in edges:
            follower = accounts.get(edge.follower_id)
            followee = accounts.get(edge.followee_id)
            if follower is None or followee is None:
                continue
            follows = edge.followee_id in follower.following
            listed = edge.follower_id in followee.followers
            if follows == listed:
                logger.info(f"skipped {edge.follower_id} -> {edge.followee_id}: no longer asymmetric")
                continue
            if follows:
                followee.followers = followee.followers + [edge.follower_id]
            else:
                followee.followers = [uid for uid in followee.followers if uid != edge.follower_id]
            logger.info(f"reconciled {edge.follower_id} -> {edge.followee_id} ({edge.missing})")
            repaired.append(edge)
        self._commit("reconcile")
        return repaired
