import pytest

from bitmast import conf
from bitmast.core.aggregation import AggregationCache, KeyAggregator, musig_key_agg
from bitmast.core.combinations import enumerate_combinations
from bitmast.core.errors import AggregationFailure
from bitmast.core.keys import PublicKey
from ...constants import KEYAGG_EXPECTED_XONLY, KEYAGG_PUBKEYS


def test_musig_key_agg_vector():
    keys = [PublicKey.fromhex(k) for k in KEYAGG_PUBKEYS]
    aggregate, coefficients = musig_key_agg(keys)
    assert aggregate.x_only.hex() == KEYAGG_EXPECTED_XONLY
    assert len(coefficients) == 3
    # the second distinct key always gets coefficient 1
    assert coefficients[1] == 1


def test_musig_key_agg_is_order_sensitive():
    keys = [PublicKey.fromhex(k) for k in KEYAGG_PUBKEYS]
    forward, _ = musig_key_agg(keys)
    backward, _ = musig_key_agg(list(reversed(keys)))
    assert forward != backward
    assert musig_key_agg(keys)[0] == forward


def test_musig_key_agg_rejects_duplicates(participants):
    with pytest.raises(AggregationFailure):
        musig_key_agg([participants[0], participants[1], participants[0]])


def test_musig_key_agg_rejects_empty():
    with pytest.raises(AggregationFailure):
        musig_key_agg([])


def test_single_key_aggregation(participants):
    aggregate, coefficients = musig_key_agg(participants[:1])
    assert len(coefficients) == 1
    assert aggregate == musig_key_agg(participants[:1])[0]


def test_aggregate_records_combination(participants):
    aggregator = KeyAggregator()
    result = aggregator.aggregate(participants[:2], (0, 1))
    assert result.combination == (0, 1)
    assert result.public_key == musig_key_agg(participants[:2])[0]
    assert len(result.leaf_hash) == 32


def test_cache_hits_and_misses(participants):
    cache = AggregationCache()
    aggregator = KeyAggregator(cache=cache)
    first = aggregator.aggregate(participants[:2])
    second = aggregator.aggregate(participants[:2])
    assert first == second
    assert len(cache) == 1
    assert participants[:2] in cache
    assert cache.misses == 1
    assert cache.hits == 1

    cache.clear()
    assert len(cache) == 0
    assert cache.hits == cache.misses == 0


def test_parallel_aggregation_preserves_order(participants):
    combinations = enumerate_combinations(len(participants), 3)
    serial = KeyAggregator(max_workers=1).aggregate_combinations(participants, combinations)
    parallel = KeyAggregator(max_workers=4).aggregate_combinations(participants, combinations)
    assert serial == parallel
    assert [agg.combination for agg in parallel] == combinations


def test_primitive_value_error_becomes_aggregation_failure(participants):
    def broken_primitive(keys):
        raise ValueError("point at infinity")

    with pytest.raises(AggregationFailure):
        KeyAggregator(broken_primitive).aggregate(participants[:2])


def test_cache_size_is_bounded(participants):
    cache = AggregationCache(max_entries=2)
    aggregator = KeyAggregator(cache=cache)
    results = [aggregator.aggregate(participants[i:i + 2]) for i in range(4)]
    assert len(cache) == 2
    assert participants[0:2] in cache
    assert participants[3:5] not in cache
    # results past the bound are still computed and returned
    assert results[3].public_key == musig_key_agg(participants[3:5])[0]
    assert aggregator.aggregate(participants[0:2]) == results[0]


def test_cache_size_must_not_be_negative():
    with pytest.raises(ValueError):
        AggregationCache(max_entries=-1)


def test_default_cache_size():
    assert AggregationCache().max_entries == conf.MAST_CACHE_SIZE
