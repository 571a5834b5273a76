"""Views: class matchers and per-class option providers."""

from .matchers import (
    AllMatcher,
    AnyMatcher,
    ClassMatcher,
    ContextMatcher,
    InterfaceMatcher,
    MatchAll,
    PackageMatcher,
    PatternMatcher,
    SubclassMatcher,
    build_matcher,
)
from .providers import (
    HIGHLIGHT_COLOR,
    ContextView,
    GlobalView,
    OptionProvider,
    PackageView,
    TagView,
)

__all__ = [
    "AllMatcher",
    "AnyMatcher",
    "ClassMatcher",
    "ContextMatcher",
    "InterfaceMatcher",
    "MatchAll",
    "PackageMatcher",
    "PatternMatcher",
    "SubclassMatcher",
    "build_matcher",
    "HIGHLIGHT_COLOR",
    "ContextView",
    "GlobalView",
    "OptionProvider",
    "PackageView",
    "TagView",
]
