from portfolio.routers import auth, catalog, creator, dashboard, health, indicators, principal, signatures, witnesses

__all__ = [
    "auth",
    "catalog",
    "creator",
    "dashboard",
    "health",
    "indicators",
    "principal",
    "signatures",
    "witnesses",
]
