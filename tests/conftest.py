import hashlib
import logging
import pytest
import sqlalchemy as sa
from sqlalchemy.orm import Session

from bitmast.core.aggregation import AggregationCache, KeyAggregator
from bitmast.core.keys import PublicKey
from bitmast.core.mast import MastController
from bitmast.core.storage import create_tables
from .constants import PARTICIPANT_SECRETS

logger = logging.getLogger(__name__)


def stub_key_agg(keys):
    """Deterministic, order-sensitive stand-in for MuSig2: the key of sha256(concatenated keys)"""
    secret = hashlib.sha256(b''.join(key.data for key in keys)).digest()
    return PublicKey.from_secret(secret), tuple(range(1, len(keys) + 1))


@pytest.fixture()
def participants() -> list[PublicKey]:
    return sorted(PublicKey.from_secret(secret) for secret in PARTICIPANT_SECRETS)


@pytest.fixture()
def stub_aggregator() -> KeyAggregator:
    return KeyAggregator(stub_key_agg, cache=AggregationCache(), max_workers=1)


@pytest.fixture()
def controller() -> MastController:
    return MastController(max_workers=1)


@pytest.fixture()
def stub_controller(stub_aggregator) -> MastController:
    return MastController(stub_aggregator)


@pytest.fixture()
def db_engine() -> sa.Engine:
    engine = sa.create_engine("sqlite://")
    create_tables(engine)
    return engine


@pytest.fixture()
def dbsession(db_engine) -> Session:
    return Session(bind=db_engine, autobegin=False)


@pytest.fixture()
def many_participants() -> list[PublicKey]:
    return sorted(PublicKey.from_secret(bytes([i + 1]) * 32) for i in range(25))
