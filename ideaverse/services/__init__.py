# Services package init
"""
IdeaVerse Backend — Services Layer
====================================

Service Inventory:
    - IdentityProvider (abstract): bearer token → verified Identity
    - JWTIdentityProvider: python-jose verification against a JWKS endpoint
      or a shared secret, with retry and circuit breaker
    - IdeaService: queries, like toggle, owner-gated create/update/delete
"""
