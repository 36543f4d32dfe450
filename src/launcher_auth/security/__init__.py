"""Security components: credential caches, token refresh and session exchange."""
