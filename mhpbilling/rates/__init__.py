from .resolver import RateTableResolver, utility_value

__all__ = ["RateTableResolver", "utility_value"]
