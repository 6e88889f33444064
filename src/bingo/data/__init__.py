from .verbs import DEFAULT_VERBS

__all__ = ["DEFAULT_VERBS"]
