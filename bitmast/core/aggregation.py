"""
Schnorr key aggregation for signer subsets.

The curve math lives behind a narrow capability, a KeyAggregationPrimitive
that turns an ordered key sequence into (aggregate key, coefficients). The
default is MuSig2 KeyAgg as in BIP-327, with point arithmetic done by
libsecp256k1 through coincurve. Anything else (a stub in tests, a hardware
signer) can be plugged in as long as it is deterministic and order-sensitive.
"""
from __future__ import annotations
import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Sequence

from coincurve import PublicKey as _CurvePoint

from .. import conf
from .errors import AggregationFailure
from .hashing import hash_leaf, tagged_hash
from .keys import PublicKey, CURVE_ORDER
from .types import Combination, Hash256

logger = logging.getLogger(__name__)

TAG_KEYAGG_LIST = b'KeyAgg list'
TAG_KEYAGG_COEFF = b'KeyAgg coefficient'

KeyAggregationPrimitive = Callable[[Sequence[PublicKey]], tuple[PublicKey, tuple[int, ...]]]


@dataclass(frozen=True)
class AggregatedKey:
    combination: Combination
    public_key: PublicKey
    coefficients: tuple[int, ...]

    @property
    def leaf_hash(self) -> Hash256:
        return hash_leaf(self.public_key.x_only)


def hash_keys(keys: Sequence[PublicKey]) -> bytes:
    return tagged_hash(TAG_KEYAGG_LIST, b''.join(key.data for key in keys))


def get_second_key(keys: Sequence[PublicKey]) -> PublicKey | None:
    for key in keys[1:]:
        if key != keys[0]:
            return key
    return None


def key_agg_coeff(keys_hash: bytes, key: PublicKey, second_key: PublicKey | None) -> int:
    if key == second_key:
        return 1
    return int.from_bytes(tagged_hash(TAG_KEYAGG_COEFF, keys_hash + key.data), 'big') % CURVE_ORDER


def musig_key_agg(keys: Sequence[PublicKey]) -> tuple[PublicKey, tuple[int, ...]]:
    keys = tuple(keys)
    if not keys:
        raise AggregationFailure("Cannot aggregate an empty key set")
    if len(set(keys)) != len(keys):
        duplicates = sorted({key.hex() for key in keys if keys.count(key) > 1})
        raise AggregationFailure(f"Duplicate keys in aggregation set: {', '.join(duplicates)}")

    keys_hash = hash_keys(keys)
    second_key = get_second_key(keys)
    coefficients = tuple(key_agg_coeff(keys_hash, key, second_key) for key in keys)

    terms: list[_CurvePoint] = []
    try:
        for key, coefficient in zip(keys, coefficients):
            point = key.to_point()
            if coefficient != 1:
                point = point.multiply(coefficient.to_bytes(32, 'big'))
            terms.append(point)
        if len(terms) == 1:
            aggregate = terms[0]
        else:
            aggregate = _CurvePoint.combine_keys(terms)
    except ValueError as e:
        # libsecp256k1 refuses zero scalars and the point at infinity
        raise AggregationFailure(f"Key aggregation of {len(keys)} keys failed: {e}") from e

    return PublicKey.from_point(aggregate), coefficients


class AggregationCache:
    """
    Aggregation results keyed by the canonical key sequence.

    Reads do not lock. Inserts go through a single writer lock, and an entry
    is never replaced once written, so readers only ever see complete results.

    The cache holds at most `max_entries` results (default MAST_CACHE_SIZE).
    Once full, new results are returned to the caller but not stored; nothing
    is evicted until clear(). The hits and misses counters are updated without
    the lock and are approximate when several threads read at once.
    """

    def __init__(self, max_entries: int | None = None):
        if max_entries is None:
            max_entries = conf.MAST_CACHE_SIZE
        if max_entries < 0:
            raise ValueError(f"Cache size must not be negative, got {max_entries}")
        self.max_entries = max_entries
        self._entries: dict[tuple[bytes, ...], tuple[PublicKey, tuple[int, ...]]] = {}
        self._write_lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _cache_key(keys: Sequence[PublicKey]) -> tuple[bytes, ...]:
        return tuple(key.data for key in keys)

    def get(self, keys: Sequence[PublicKey]) -> tuple[PublicKey, tuple[int, ...]] | None:
        result = self._entries.get(self._cache_key(keys))
        if result is None:
            self.misses += 1
        else:
            self.hits += 1
        return result

    def put(
        self,
        keys: Sequence[PublicKey],
        result: tuple[PublicKey, tuple[int, ...]],
    ) -> tuple[PublicKey, tuple[int, ...]]:
        cache_key = self._cache_key(keys)
        with self._write_lock:
            if cache_key not in self._entries and len(self._entries) >= self.max_entries:
                return result
            return self._entries.setdefault(cache_key, result)

    def clear(self):
        with self._write_lock:
            self._entries = {}
            self.hits = 0
            self.misses = 0

    def __len__(self):
        return len(self._entries)

    def __contains__(self, keys: Sequence[PublicKey]) -> bool:
        return self._cache_key(keys) in self._entries


class KeyAggregator:
    def __init__(
        self,
        primitive: KeyAggregationPrimitive = musig_key_agg,
        *,
        cache: AggregationCache | None = None,
        max_workers: int | None = None,
    ):
        self.primitive = primitive
        self.cache = cache
        self.max_workers = max_workers

    def aggregate(self, keys: Sequence[PublicKey], combination: Combination = ()) -> AggregatedKey:
        """
        Aggregate keys in the order given. Callers pass the keys of a combination
        in ascending participant index order, so every party gets the same bytes.
        """
        keys = tuple(keys)
        result = self.cache.get(keys) if self.cache is not None else None
        if result is None:
            try:
                result = self.primitive(keys)
            except AggregationFailure:
                raise
            except ValueError as e:
                raise AggregationFailure(f"Aggregation primitive rejected the key set: {e}") from e
            if self.cache is not None:
                result = self.cache.put(keys, result)

        public_key, coefficients = result
        return AggregatedKey(
            combination=tuple(combination),
            public_key=public_key,
            coefficients=tuple(coefficients),
        )

    def aggregate_combinations(
        self,
        participants: Sequence[PublicKey],
        combinations: Sequence[Combination],
    ) -> list[AggregatedKey]:
        """Aggregate every combination, fanning out over a thread pool. Output order matches input order."""
        def aggregate_one(combination: Combination) -> AggregatedKey:
            return self.aggregate([participants[i] for i in combination], combination)

        max_workers = self.max_workers or conf.MAST_WORKERS
        if max_workers <= 1 or len(combinations) < 2:
            return [aggregate_one(c) for c in combinations]

        logger.debug("Aggregating %s combinations with %s workers", len(combinations), max_workers)
        # libsecp256k1 calls go through cffi, which releases the GIL
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(aggregate_one, combinations))
