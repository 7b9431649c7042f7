from .response import ResponseComparator, canonical_json, wildcard_to_pattern
from .strategy import StrategySelector

__all__ = ["ResponseComparator", "StrategySelector", "canonical_json", "wildcard_to_pattern"]
