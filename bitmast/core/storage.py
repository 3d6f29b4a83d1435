"""
Persist committed MASTs so proofs can be produced later without the caller
keeping the tree around.

Only public data is stored. Loading re-runs the commitment from the stored
participants and checks the result against the stored root, so a tampered
or stale row is caught before any proof is built from it.
"""
import logging

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .combinations import count_combinations
from .mast import Mast, MastController
from .models import Base, StoredMast
from .parsing import parse_hash256, parse_pubkey_list, serialize_hex
from .keys import PublicKey
from .tree import MastTree, build_tree

logger = logging.getLogger(__name__)


def create_tables(engine: Engine):
    Base.metadata.create_all(engine)


def save_mast(dbsession: Session, mast: Mast, *, name: str) -> StoredMast:
    commitment = mast.output_commitment
    stored = StoredMast(
        name=name,
        threshold=mast.threshold.m,
        participants=[key.hex() for key in mast.participants],
        prune_budget=mast.prune_budget,
        dropped_count=mast.dropped_count,
        merkle_root=serialize_hex(mast.root),
        internal_key=mast.internal_key.hex(),
        output_key=commitment.output_key.hex(),
        leaf_hashes=[serialize_hex(leaf) for leaf in mast.tree.leaves],
    )
    dbsession.add(stored)
    dbsession.flush()
    logger.info("Saved MAST %s (id %s)", name, stored.id)
    return stored


def find_stored_mast(dbsession: Session, name: str) -> StoredMast:
    """Raises sqlalchemy.exc.NoResultFound if there is no MAST with this name"""
    return dbsession.execute(
        select(StoredMast).filter_by(name=name)
    ).scalar_one()


def load_tree(stored: StoredMast) -> MastTree:
    """Rebuild the tree from the stored leaf hashes alone, without aggregating any keys"""
    tree = build_tree(parse_hash256(leaf) for leaf in stored.leaf_hashes)
    if tree.root != parse_hash256(stored.merkle_root):
        raise ValueError(f"Stored leaves of MAST {stored.name} do not hash to the stored root")
    return tree


def load_mast(dbsession: Session, name: str, *, controller: MastController = None) -> Mast:
    """
    Rebuild a stored MAST. The policy was accepted when it was committed, so the
    rebuild uses its own combination count as the ceiling instead of the
    controller's.
    """
    stored = find_stored_mast(dbsession, name)
    if controller is None:
        controller = MastController()

    participants = parse_pubkey_list(stored.participants)
    mast, dropped_count = controller.commit(
        participants,
        stored.threshold,
        stored.prune_budget,
        internal_key=PublicKey.fromhex(stored.internal_key),
        ceiling=count_combinations(len(participants), stored.threshold),
    )
    if mast.root != parse_hash256(stored.merkle_root):
        raise ValueError(
            f"Rebuilt root {mast.root.hex()} of MAST {name} does not match the stored root {stored.merkle_root}"
        )
    if dropped_count != stored.dropped_count:
        raise ValueError(
            f"Rebuilt MAST {name} dropped {dropped_count} combinations, {stored.dropped_count} were stored"
        )
    return mast
