class MastError(Exception):
    pass


class InvalidThreshold(MastError, ValueError):
    pass


class InvalidPublicKey(MastError, ValueError):
    pass


class CombinatorialOverflow(MastError):
    def __init__(self, *, n: int, m: int, count: int, ceiling: int):
        self.n = n
        self.m = m
        self.count = count
        self.ceiling = ceiling
        super().__init__(
            f"C({n}, {m}) = {count} combinations exceeds the ceiling of {ceiling}"
        )


class AggregationFailure(MastError):
    pass


class EmptyTree(MastError, ValueError):
    pass


class IndexOutOfRange(MastError, IndexError):
    pass


class SubsetNotCommitted(MastError, LookupError):
    pass


class ProofDecodeError(MastError, ValueError):
    pass
