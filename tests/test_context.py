import dataclasses

import pytest

from evoengine.context import LocalContext, SharedContext


def test_snapshot_update_leaves_earlier_holders_unchanged(make_context):
    ctx = make_context(acceptance={"temp0": 40.0})
    assert isinstance(ctx, LocalContext)
    held = ctx
    updated = ctx.update(temperature=5.0, generation=3)
    assert updated is not held
    assert held.state.temperature == 40.0
    assert held.state.generation == 0
    assert updated.state.temperature == 5.0
    assert updated.config is held.config


def test_snapshot_cannot_be_mutated(make_context):
    ctx = make_context()
    with pytest.raises(dataclasses.FrozenInstanceError):
        ctx.state = ctx.state


def test_shared_update_is_seen_by_every_holder(make_context):
    ctx = make_context(acceptance={"temp0": 40.0}, execution={"semantics": "byReference"})
    assert isinstance(ctx, SharedContext)
    held = ctx
    updated = ctx.update(temperature=5.0, generation=3)
    assert updated is held
    assert held.state.temperature == 5.0
    assert held.state.generation == 3
