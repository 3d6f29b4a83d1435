import pytest
from sqlalchemy.exc import NoResultFound

from bitmast.core.mast import MastController
from bitmast.core.storage import find_stored_mast, load_mast, load_tree, save_mast


def test_save_and_load(dbsession, stub_controller, participants):
    mast, _ = stub_controller.commit(participants[:5], 2, prune_budget=4)
    with dbsession.begin():
        stored = save_mast(dbsession, mast, name="test")
        assert stored.id is not None

    with dbsession.begin():
        stored = find_stored_mast(dbsession, "test")
        assert stored.threshold == 2
        assert stored.participants == [key.hex() for key in mast.participants]
        assert stored.prune_budget == 4
        assert stored.dropped_count == 6
        assert stored.merkle_root == mast.root.hex()
        assert stored.output_key == mast.output_commitment.output_key.hex()
        assert load_tree(stored) == mast.tree

        loaded = load_mast(dbsession, "test", controller=stub_controller)
        assert loaded.root == mast.root
        assert loaded.combinations == mast.combinations
        assert loaded.internal_key == mast.internal_key


def test_load_detects_tampering(dbsession, stub_controller, participants):
    mast, _ = stub_controller.commit(participants[:4], 2)
    with dbsession.begin():
        stored = save_mast(dbsession, mast, name="tampered")
        stored.merkle_root = "00" * 32

    with dbsession.begin():
        with pytest.raises(ValueError):
            load_mast(dbsession, "tampered", controller=stub_controller)
        with pytest.raises(ValueError):
            load_tree(find_stored_mast(dbsession, "tampered"))


def test_load_with_different_aggregation_fails(dbsession, stub_controller, participants):
    mast, _ = stub_controller.commit(participants[:3], 2)
    with dbsession.begin():
        save_mast(dbsession, mast, name="stub")

    with dbsession.begin():
        with pytest.raises(ValueError):
            load_mast(dbsession, "stub", controller=MastController(max_workers=1))


def test_missing_mast(dbsession):
    with dbsession.begin():
        with pytest.raises(NoResultFound):
            find_stored_mast(dbsession, "nope")


def test_load_mast_committed_above_default_ceiling(dbsession, stub_aggregator, stub_controller, many_participants):
    controller = MastController(stub_aggregator, ceiling=10 ** 7)
    mast, dropped = controller.commit(many_participants, 12, prune_budget=4)
    assert mast.total_combinations == 5200300
    assert dropped == 5200296
    with dbsession.begin():
        save_mast(dbsession, mast, name="wide")

    # stub_controller has the default ceiling, far below C(25, 12)
    with dbsession.begin():
        loaded = load_mast(dbsession, "wide", controller=stub_controller)
        assert loaded.root == mast.root
        assert loaded.combinations == mast.combinations
