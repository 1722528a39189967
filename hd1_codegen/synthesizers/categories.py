"""
Component category classification.

Categories are inferred from component names by keyword matching. This is a
heuristic: it is approximate and not authoritative (a component named
"shadow-catcher" lands in "light" whatever it actually does). Classifiers
are pluggable so new categories can be added without touching extraction.
"""

from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

FALLBACK_CATEGORY = "utility"


class CategoryClassifier(Protocol):
    def classify(self, component_name: str) -> str:
        ...


@dataclass(frozen=True)
class CategoryRule:
    category: str
    keywords: Tuple[str, ...]

    def matches(self, name: str) -> bool:
        return any(keyword in name for keyword in self.keywords)


DEFAULT_RULES: Tuple[CategoryRule, ...] = (
    CategoryRule("geometry", ("geometry", "box", "sphere")),
    CategoryRule("material", ("material", "shader")),
    CategoryRule("light", ("light", "shadow")),
    CategoryRule("physics", ("physics", "body")),
    CategoryRule("animation", ("animation", "tween")),
    CategoryRule("effects", ("particle", "effect")),
    CategoryRule("environment", ("environment", "sky")),
)


class KeywordCategoryClassifier:
    """First matching rule wins; names are compared lower-cased."""

    def __init__(self, rules: Sequence[CategoryRule] = DEFAULT_RULES, fallback: str = FALLBACK_CATEGORY):
        self.rules = tuple(rules)
        self.fallback = fallback

    def classify(self, component_name: str) -> str:
        name = component_name.lower()
        for rule in self.rules:
            if rule.matches(name):
                return rule.category
        return self.fallback

    def with_rules(self, *rules: CategoryRule) -> "KeywordCategoryClassifier":
        """New classifier with extra rules checked before the existing ones."""
        return KeywordCategoryClassifier(tuple(rules) + self.rules, self.fallback)
