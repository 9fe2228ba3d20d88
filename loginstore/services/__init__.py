"""Service layer: the UserStore facade."""

from loginstore.services.user_store import UserStore

__all__ = ["UserStore"]
