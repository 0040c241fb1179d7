from typing import Any, Callable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

# A rule pairs a predicate with the result it yields. Rule lists are evaluated
# top to bottom and the first matching predicate wins, so list order is part of
# the business logic.
Rule = Tuple[Callable[[Any], bool], T]


def first_match(rules: List[Rule], subject: Any, default: Optional[T] = None) -> Optional[T]:
    """Return the result of the first rule whose predicate accepts ``subject``."""
    for predicate, result in rules:
        if predicate(subject):
            return result
    return default


def band(threshold: float, key: str = "lead_score") -> Callable[[Any], bool]:
    """Predicate: ``subject[key] >= threshold``."""
    return lambda subject: (subject.get(key) or 0) >= threshold


def category_band(category: str, threshold: float) -> Callable[[Any], bool]:
    """Predicate: subject is in ``category`` and scores at least ``threshold``."""
    return lambda subject: subject.get("category") == category and (subject.get("lead_score") or 0) >= threshold
