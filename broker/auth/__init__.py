"""
Authentication helpers for the identity broker.

Design goals:
- One OAuth2 authorization-code flow, parametrized per provider (Discord, Google).
- Stateless: the signed session cookie is the only store of identity.
- Cookie-based session (HttpOnly, Secure, SameSite=Lax) for the client app.
"""
