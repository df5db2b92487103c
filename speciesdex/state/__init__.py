from .pagination import PaginationCoordinator, PaginationState, reduce

__all__ = ["PaginationCoordinator", "PaginationState", "reduce"]
