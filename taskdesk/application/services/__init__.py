"""Application services shared by use cases."""

from taskdesk.application.services.authorization_service import AuthorizationService

__all__ = ["AuthorizationService"]
