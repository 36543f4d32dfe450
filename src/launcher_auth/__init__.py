"""launcher-auth: token and session manager for the game launcher.

Acquires, caches, refreshes and exchanges premium OAuth tokens, game-session
tokens and per-issuer offline tokens. The entry point for callers is
launcher_auth.manager.token_service.TokenSessionManager.
"""

__version__ = "0.1.0"
