"""Unit tests for FollowService against in-memory stores."""

import logging

import pytest

from services.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    UnauthenticatedError,
)
from services.follows import FollowResult, FollowService
from services.profiles import UserProfileReader


@pytest.fixture()
def service(user_store, follow_store) -> FollowService:
    return FollowService(user_store, follow_store)


@pytest.mark.asyncio
async def test_follow_increments_both_counters(service, user_store, follow_store):
    actor = user_store.add(following_count=3)
    target = user_store.add(follower_count=10)

    result = await service.follow(actor.id, target.id)

    assert result == FollowResult(is_following=True, follower_count=11)
    assert target.follower_count == 11
    assert actor.following_count == 4
    assert (actor.id, target.id) in follow_store.relationships


@pytest.mark.asyncio
async def test_follow_requires_actor(service, user_store):
    target = user_store.add()

    with pytest.raises(UnauthenticatedError):
        await service.follow(None, target.id)


@pytest.mark.asyncio
async def test_self_follow_rejected_before_existence_check(service):
    # The id does not resolve to any user, yet the self-follow check wins.
    with pytest.raises(InvalidOperationError) as excinfo:
        await service.follow("ghost", "ghost")
    assert excinfo.value.message == "Cannot follow yourself"


@pytest.mark.asyncio
async def test_self_follow_rejected_even_when_already_following_state_is_corrupt(
    service, user_store, follow_store
):
    actor = user_store.add()
    await follow_store.create_relationship(actor.id, actor.id)

    with pytest.raises(InvalidOperationError):
        await service.follow(actor.id, actor.id)
    assert actor.follower_count == 0


@pytest.mark.asyncio
async def test_follow_unknown_target(service, user_store):
    actor = user_store.add()

    with pytest.raises(NotFoundError) as excinfo:
        await service.follow(actor.id, "missing")
    assert excinfo.value.message == "User not found"


@pytest.mark.asyncio
async def test_second_follow_conflicts_and_leaves_state_unchanged(service, user_store, follow_store):
    actor = user_store.add()
    target = user_store.add()
    await service.follow(actor.id, target.id)

    with pytest.raises(ConflictError) as excinfo:
        await service.follow(actor.id, target.id)

    assert excinfo.value.message == "Already following this user"
    assert target.follower_count == 1
    assert actor.following_count == 1
    assert len(follow_store.relationships) == 1


@pytest.mark.asyncio
async def test_duplicate_insert_race_is_reported_as_conflict(service, user_store, follow_store):
    actor = user_store.add()
    target = user_store.add(follower_count=5)
    follow_store.race_on_create = True

    with pytest.raises(ConflictError):
        await service.follow(actor.id, target.id)

    assert target.follower_count == 5
    assert actor.following_count == 0


@pytest.mark.asyncio
async def test_unfollow_without_relationship(service, user_store):
    actor = user_store.add(following_count=0)
    target = user_store.add(follower_count=0)

    with pytest.raises(InvalidOperationError) as excinfo:
        await service.unfollow(actor.id, target.id)

    assert excinfo.value.message == "Not following this user"
    assert target.follower_count == 0
    assert actor.following_count == 0


@pytest.mark.asyncio
async def test_unfollow_requires_actor(service, user_store):
    target = user_store.add()

    with pytest.raises(UnauthenticatedError):
        await service.unfollow(None, target.id)


@pytest.mark.asyncio
async def test_follow_then_unfollow_restores_initial_state(service, user_store, follow_store):
    actor = user_store.add(following_count=2)
    target = user_store.add(follower_count=7)

    await service.follow(actor.id, target.id)
    result = await service.unfollow(actor.id, target.id)

    assert result == FollowResult(is_following=False, follower_count=7)
    assert target.follower_count == 7
    assert actor.following_count == 2
    assert follow_store.relationships == {}


@pytest.mark.asyncio
async def test_unfollow_clamps_inconsistent_counter_at_zero(service, user_store, follow_store):
    actor = user_store.add(following_count=0)
    target = user_store.add(follower_count=0)
    await follow_store.create_relationship(actor.id, target.id)

    result = await service.unfollow(actor.id, target.id)

    assert result.follower_count == 0
    assert target.follower_count == 0
    assert actor.following_count == 0


@pytest.mark.asyncio
async def test_counter_failure_does_not_change_outcome(service, user_store, follow_store, caplog):
    actor = user_store.add()
    target = user_store.add(follower_count=4)
    user_store.failing_counters.add("following_count")
    caplog.set_level(logging.WARNING, logger="services.follows.service")

    result = await service.follow(actor.id, target.id)

    assert result == FollowResult(is_following=True, follower_count=5)
    assert actor.following_count == 0
    assert (actor.id, target.id) in follow_store.relationships
    assert any(
        record.levelno == logging.WARNING and getattr(record, "counter", None) == "following_count"
        for record in caplog.records
    )


@pytest.mark.asyncio
async def test_follower_counter_failure_reports_stored_value(service, user_store, follow_store):
    actor = user_store.add()
    target = user_store.add(follower_count=4)
    user_store.failing_counters.add("follower_count")

    result = await service.follow(actor.id, target.id)

    # The response reflects the stored counter, not a locally computed one.
    assert result == FollowResult(is_following=True, follower_count=4)
    assert actor.following_count == 1


@pytest.mark.asyncio
async def test_counters_never_negative_across_sequences(service, user_store):
    alice = user_store.add()
    bob = user_store.add()
    carol = user_store.add()

    operations = [
        ("unfollow", alice, bob),
        ("follow", alice, bob),
        ("follow", carol, bob),
        ("unfollow", alice, bob),
        ("unfollow", alice, bob),
        ("follow", bob, alice),
        ("follow", alice, alice),
        ("unfollow", carol, bob),
        ("unfollow", bob, alice),
        ("unfollow", bob, carol),
    ]
    for name, actor, target in operations:
        try:
            await getattr(service, name)(actor.id, target.id)
        except (ConflictError, InvalidOperationError):
            pass
        for user in (alice, bob, carol):
            assert user.follower_count >= 0
            assert user.following_count >= 0

    for user in (alice, bob, carol):
        assert user.follower_count == 0
        assert user.following_count == 0


@pytest.mark.asyncio
async def test_profile_reader_is_following(service, user_store, follow_store):
    reader = UserProfileReader(user_store, follow_store)
    viewer = user_store.add()
    subject = user_store.add()

    assert await reader.is_following(viewer.id, subject.id) is False
    await service.follow(viewer.id, subject.id)
    assert await reader.is_following(viewer.id, subject.id) is True
    assert await reader.is_following(subject.id, viewer.id) is False
    assert await reader.is_following(None, subject.id) is False

    profile = await reader.get_profile(viewer.id, subject.id)
    assert profile.is_following is True
    assert profile.is_own_profile is False
    own = await reader.get_profile(viewer.id, viewer.id)
    assert own.is_following is False
    assert own.is_own_profile is True


@pytest.mark.asyncio
async def test_profile_reader_unknown_user(user_store, follow_store):
    reader = UserProfileReader(user_store, follow_store)

    with pytest.raises(NotFoundError):
        await reader.get_profile(None, "missing")
    with pytest.raises(NotFoundError):
        await reader.list_followers("missing")


@pytest.mark.asyncio
async def test_concurrent_unfollow_decrements_counters_once(
    service, user_store, follow_store, monkeypatch
):
    alice = user_store.add()
    carol = user_store.add()
    bob = user_store.add()
    await service.follow(alice.id, bob.id)
    await service.follow(carol.id, bob.id)
    stale_row = follow_store.relationships[(alice.id, bob.id)]

    # Both requests see the row before either deletes it.
    async def stale_find_relationship(follower_id: str, following_id: str):
        return stale_row

    monkeypatch.setattr(follow_store, "find_relationship", stale_find_relationship)

    first = await service.unfollow(alice.id, bob.id)
    assert first == FollowResult(is_following=False, follower_count=1)

    with pytest.raises(InvalidOperationError) as excinfo:
        await service.unfollow(alice.id, bob.id)

    assert excinfo.value.message == "Not following this user"
    assert bob.follower_count == 1
    assert alice.following_count == 0
    assert carol.following_count == 1


@pytest.mark.asyncio
async def test_follow_by_deleted_actor_is_unauthenticated(service, user_store, follow_store):
    target = user_store.add()

    with pytest.raises(UnauthenticatedError):
        await service.follow("deleted-account", target.id)

    assert follow_store.relationships == {}
    assert target.follower_count == 0
