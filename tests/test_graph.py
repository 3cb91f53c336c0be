import logging

import pytest

from socialnet import database, models, schemas
from socialnet.core.exceptions import (
    AlreadyFollowing,
    AlreadyLiked,
    NotFollowing,
    NotFoundException,
    NotLiked,
    ValidationException,
)
from socialnet.services.accounts import identity_of
from socialnet.services.graph import AsymmetricEdge, SocialGraphManager
from socialnet.services.posts import PostService

from .conftest import account_data


@pytest.fixture
def graph(db):
    return SocialGraphManager(db)


@pytest.fixture
def people(accounts):
    return [identity_of(accounts.register(account_data(name))[0]) for name in ("alice", "bob", "carol")]


def account(db, user_id):
    db.expire_all()
    return db.query(models.Account).filter(models.Account.user_id == user_id).one()


def assert_symmetric(db):
    rows = db.query(models.Account).all()
    by_id = {row.user_id: row for row in rows}
    for a in rows:
        for b in rows:
            assert (b.user_id in a.following) == (a.user_id in by_id[b.user_id].followers)


def test_follow_unfollow_scenario(db, graph, people):
    alice, bob, _ = people
    assert (alice.user_id, bob.user_id) == (1, 2)

    graph.follow(alice, 2)
    assert account(db, 1).following == [2]
    assert account(db, 2).followers == [1]

    with pytest.raises(NotFollowing):
        graph.unfollow(bob, 1)

    graph.unfollow(alice, 2)
    assert account(db, 1).following == []
    assert account(db, 2).followers == []
    assert graph.audit() == []


def test_follow_twice_is_a_conflict(db, graph, people):
    alice, bob, _ = people
    graph.follow(alice, bob.user_id)
    with pytest.raises(AlreadyFollowing):
        graph.follow(alice, bob.user_id)
    assert account(db, bob.user_id).followers == [alice.user_id]


def test_follow_unknown_account(db, graph, people):
    alice = people[0]
    with pytest.raises(NotFoundException):
        graph.follow(alice, 99)
    assert account(db, alice.user_id).following == []


def test_self_follow_rejected(graph, people):
    with pytest.raises(ValidationException):
        graph.follow(people[0], people[0].user_id)


def test_follow_lists_stay_symmetric_after_mixed_operations(db, graph, people):
    alice, bob, carol = people
    graph.follow(alice, bob.user_id)
    graph.follow(bob, alice.user_id)
    graph.follow(carol, alice.user_id)
    graph.follow(alice, carol.user_id)
    graph.unfollow(alice, bob.user_id)
    graph.follow(carol, bob.user_id)
    graph.unfollow(carol, alice.user_id)

    db.expire_all()
    assert_symmetric(db)
    assert [a.username for a in graph.list_following(carol.user_id)] == ["bob"]
    assert [a.username for a in graph.list_followers(bob.user_id)] == ["carol"]
    assert [a.username for a in graph.list_followers(alice.user_id)] == ["bob"]


def test_listing_unknown_account(graph):
    with pytest.raises(NotFoundException):
        graph.list_followers(42)
    with pytest.raises(NotFoundException):
        graph.list_following(42)


def test_listing_drops_unknown_identifiers(db, graph, people):
    alice = account(db, people[0].user_id)
    alice.followers = [77, people[1].user_id]
    db.commit()
    assert [a.user_id for a in graph.list_followers(alice.user_id)] == [people[1].user_id]


def test_like_toggle(db, graph, people):
    alice, bob, _ = people
    post = PostService(db).upload(alice, schemas.PostCreate(text="hello"))

    graph.like(bob, post.id)
    with pytest.raises(AlreadyLiked):
        graph.like(bob, post.id)
    db.expire_all()
    assert db.get(models.Post, post.id).likes == [bob.user_id]

    graph.like(alice, post.id)
    assert [a.username for a in graph.list_likers(post.id)] == ["bob", "alice"]

    graph.unlike(bob, post.id)
    with pytest.raises(NotLiked):
        graph.unlike(bob, post.id)
    db.expire_all()
    assert db.get(models.Post, post.id).likes == [alice.user_id]


def test_like_unknown_post(graph, people):
    with pytest.raises(NotFoundException):
        graph.like(people[0], 404)
    with pytest.raises(NotFoundException):
        graph.unlike(people[0], 404)
    with pytest.raises(NotFoundException):
        graph.list_likers(404)


def test_audit_and_reconcile(db, graph, people):
    alice, bob, carol = people
    graph.follow(alice, bob.user_id)

    # Second write of a follow lost, and a stale follower left by an unfollow
    a = account(db, alice.user_id)
    a.following = a.following + [carol.user_id]
    db.commit()
    b = account(db, bob.user_id)
    b.followers = b.followers + [carol.user_id]
    db.commit()

    expected = [
        AsymmetricEdge(alice.user_id, carol.user_id, "followers"),
        AsymmetricEdge(carol.user_id, bob.user_id, "following"),
    ]
    assert graph.audit() == expected
    assert graph.reconcile() == expected

    assert graph.audit() == []
    assert account(db, carol.user_id).followers == [alice.user_id]
    assert account(db, bob.user_id).followers == [alice.user_id]
    assert_symmetric(db)


def test_reconcile_noop_on_consistent_graph(graph, people):
    graph.follow(people[0], people[1].user_id)
    assert graph.reconcile() == []


def test_repair_skips_edge_fixed_by_concurrent_follow(db, graph, people):
    alice, bob, _ = people
    b = account(db, bob.user_id)
    b.followers = [alice.user_id]
    db.commit()

    edges = graph.audit()
    assert edges == [AsymmetricEdge(alice.user_id, bob.user_id, "following")]

    other = database.SessionLocal()
    try:
        SocialGraphManager(other).follow(alice, bob.user_id)
    finally:
        other.close()

    assert graph.repair(edges) == []
    assert account(db, alice.user_id).following == [bob.user_id]
    assert account(db, bob.user_id).followers == [alice.user_id]
    assert_symmetric(db)


def test_repair_skips_edge_fixed_by_concurrent_unfollow(db, graph, people):
    alice, bob, _ = people
    graph.follow(alice, bob.user_id)
    b = account(db, bob.user_id)
    b.followers = []
    db.commit()

    edges = graph.audit()
    assert edges == [AsymmetricEdge(alice.user_id, bob.user_id, "followers")]

    other = database.SessionLocal()
    try:
        SocialGraphManager(other).unfollow(alice, bob.user_id)
    finally:
        other.close()

    assert graph.repair(edges) == []
    assert account(db, alice.user_id).following == []
    assert account(db, bob.user_id).followers == []


def test_audit_warns_about_dangling_references(db, graph, people, caplog):
    alice = account(db, people[0].user_id)
    alice.following = [88]
    alice.followers = [77]
    db.commit()

    with caplog.at_level(logging.WARNING, logger="socialnet.services.graph"):
        assert graph.audit() == []
    assert f"{alice.user_id}.following lists missing account 88" in caplog.text
    assert f"{alice.user_id}.followers lists missing account 77" in caplog.text
