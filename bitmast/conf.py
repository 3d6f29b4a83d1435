import os


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value == '':
        return None
    return int(value)


# Hard ceiling on C(n, m), checked before anything is enumerated or aggregated
MAST_MAX_COMBINATIONS = int(os.getenv('MAST_MAX_COMBINATIONS', 1_000_000))

MAST_WORKERS = _optional_int('MAST_WORKERS') or os.cpu_count() or 1

# Most aggregation results one AggregationCache keeps
MAST_CACHE_SIZE = int(os.getenv('MAST_CACHE_SIZE', 100_000))
