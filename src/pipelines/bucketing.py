from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterable, List, Sequence, Tuple, TypeVar

import pandas as pd

from src.corpus.attestation import Attestation

SampleT = TypeVar("SampleT")
BucketKey = Tuple[str, ...]


@dataclass(frozen=True)
class BucketPlan(Generic[SampleT]):
    """Samples grouped by key, each bucket keeping original stream order."""

    keys: Tuple[BucketKey, ...]
    indices: Dict[BucketKey, List[int]]
    samples: Sequence[SampleT]

    def sizes(self) -> Dict[BucketKey, int]:
        return {key: len(self.indices[key]) for key in self.keys}

    def members(self, key: BucketKey) -> List[SampleT]:
        return [self.samples[idx] for idx in self.indices[key]]


def build_bucket_plan(
    samples: Sequence[SampleT],
    key_fn: Callable[[SampleT], BucketKey],
) -> BucketPlan[SampleT]:
    """Group samples by `key_fn`; keys are ordered by first appearance."""
    buckets: Dict[BucketKey, List[int]] = defaultdict(list)
    for idx, sample in enumerate(samples):
        buckets[key_fn(sample)].append(idx)
    return BucketPlan(keys=tuple(buckets), indices=dict(buckets), samples=samples)


def token_streams(attestations: Iterable[Attestation]) -> Dict[str, List[str]]:
    """Map each construction to its type labels in attestation order."""
    plan = build_bucket_plan(list(attestations), lambda record: (record.construction,))
    return {key[0]: [record.type for record in plan.members(key)] for key in plan.keys}


def token_streams_from_frame(frame: pd.DataFrame) -> Dict[str, List[str]]:
    """Same as `token_streams` for a validated attestation DataFrame."""
    constructions = frame["construction"].tolist()
    plan = build_bucket_plan(constructions, lambda construction: (construction,))
    types = frame["type"].tolist()
    return {key[0]: [types[idx] for idx in plan.indices[key]] for key in plan.keys}
