from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Optional, Protocol, Tuple

from flagsync.core.events.models import FeatureRequestEvent, new_feature_request_event
from flagsync.core.flags.models import FeatureFlag
from flagsync.core.flags.store import InMemoryFeatureStore
from flagsync.core.users import User


@dataclass
class EvaluationResult:
    value: Any
    variation: Optional[int]
    prerequisite_events: List[FeatureRequestEvent] = field(default_factory=list)


class Evaluator(Protocol):
    def evaluate(self, flag: FeatureFlag, user: User, store: InMemoryFeatureStore) -> EvaluationResult: ...


def _variation(flag: FeatureFlag, index: Optional[int], events: List[FeatureRequestEvent]) -> EvaluationResult:
    if index is None or index < 0 or index >= len(flag.variations):
        return EvaluationResult(value=None, variation=None, prerequisite_events=events)
    return EvaluationResult(value=flag.variations[index], variation=index, prerequisite_events=events)


class SimpleEvaluator:
    """
    Serves the off variation when a flag is off or one of its prerequisites
    is not met, and the fallthrough variation otherwise. Targeting rules and
    rollouts are left to a full evaluation engine.
    """

    def evaluate(self, flag: FeatureFlag, user: User, store: InMemoryFeatureStore) -> EvaluationResult:
        result, _ = self._evaluate(flag, user, store, frozenset())
        return result

    def _evaluate(self, flag: FeatureFlag, user: User, store: InMemoryFeatureStore, seen: FrozenSet[str]) -> Tuple[EvaluationResult, bool]:
        events: List[FeatureRequestEvent] = []
        if not flag.on:
            return _variation(flag, flag.off_variation, events), False
        seen = seen | {flag.key}
        for pkey in flag.prerequisites:
            pre = store.get(pkey)
            # a missing or cyclic prerequisite counts as not met
            if pre is None or pkey in seen:
                return _variation(flag, flag.off_variation, events), False
            pres, met = self._evaluate(pre, user, store, seen)
            events.extend(pres.prerequisite_events)
            events.append(new_feature_request_event(pre.key, pre, user, pres.variation, pres.value, None, prereq_of=flag.key))
            if not met:
                return _variation(flag, flag.off_variation, events), False
        return _variation(flag, flag.fallthrough_variation, events), True
