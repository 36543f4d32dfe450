"""Manager layer wiring the auth components behind one facade."""

from launcher_auth.manager.token_service import TokenSessionManager

__all__ = ["TokenSessionManager"]
