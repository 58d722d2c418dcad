from . import materials

__all__ = ["materials"]
