from .filters import available_categories, filter_features, matches

__all__ = ["available_categories", "filter_features", "matches"]
