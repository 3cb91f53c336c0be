import logging
import random
import uuid
from dataclasses import asdict

from celery import Celery
from faker import Faker

from . import schemas
from .api.deps import get_credential_service, get_password_hasher
from .core.config import get_settings
from .database import SessionLocal
from .services.accounts import AccountService, identity_of
from .services.graph import SocialGraphManager

logger = logging.getLogger(__name__)
settings = get_settings()

# Configure Celery
celery_app = Celery('socialnet', broker=settings.CELERY_BROKER_URL)
celery_app.conf.beat_schedule = {
    "reconcile-follow-graph": {
        "task": "reconcile_follow_graph",
        "schedule": float(settings.GRAPH_RECONCILE_INTERVAL_SECONDS),
    },
}


@celery_app.task(name="audit_follow_graph")
def audit_follow_graph():
    """Report follow relationships that are recorded on one side only"""
    db = SessionLocal()
    try:
        edges = SocialGraphManager(db).audit()
    finally:
        db.close()
    logger.info(f"Graph audit found {len(edges)} asymmetric relationships")
    return [asdict(edge) for edge in edges]


@celery_app.task(name="reconcile_follow_graph")
def reconcile_follow_graph():
    """Repair asymmetric follow relationships"""
    db = SessionLocal()
    try:
        edges = SocialGraphManager(db).reconcile()
    finally:
        db.close()
    logger.info(f"Graph reconciliation repaired {len(edges)} relationships")
    return [asdict(edge) for edge in edges]


def fake_account(fake: Faker) -> schemas.AccountCreate:
    username = f"{fake.user_name()}_{uuid.uuid4().hex[:8]}"
    return schemas.AccountCreate(
        name=fake.name(),
        email=f"{username}@{fake.free_email_domain()}",
        password=f"Aa1!{fake.lexify('????????')}",
        username=username,
        gender=random.choice(list(schemas.Gender)),
        mobile=f"+{random.randint(1, 999)}-{fake.numerify('##########')}",
    )


@celery_app.task(name="seed_network")
def seed_network(num_users=10, follows_per_user=3):
    """Register fake accounts and let each follow a few of the others"""
    fake = Faker()
    db = SessionLocal()
    try:
        accounts = AccountService(
            db,
            get_password_hasher(),
            get_credential_service(),
            max_attempts=settings.USER_ID_ALLOCATION_RETRIES,
        )
        created = [accounts.register(fake_account(fake))[0] for _ in range(num_users)]
        identities = [identity_of(account) for account in created]

        graph = SocialGraphManager(db)
        follows = 0
        for identity in identities:
            others = [other.user_id for other in identities if other.user_id != identity.user_id]
            for target in random.sample(others, min(follows_per_user, len(others))):
                graph.follow(identity, target)
                follows += 1
    finally:
        db.close()

    logger.info(f"Seeded {len(identities)} accounts with {follows} follows")
    return {"user_ids": [identity.user_id for identity in identities], "follows": follows}
