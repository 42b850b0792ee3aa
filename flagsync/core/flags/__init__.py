from flagsync.core.flags.evaluator import EvaluationResult, Evaluator, SimpleEvaluator
from flagsync.core.flags.models import FeatureFlag
from flagsync.core.flags.store import InMemoryFeatureStore

__all__ = ["EvaluationResult", "Evaluator", "SimpleEvaluator", "FeatureFlag", "InMemoryFeatureStore"]
