from .variables import DEFAULT_MAX_INTERPOLATION_PASSES, PLACEHOLDER_PATTERN, VariableResolver

__all__ = ["DEFAULT_MAX_INTERPOLATION_PASSES", "PLACEHOLDER_PATTERN", "VariableResolver"]
