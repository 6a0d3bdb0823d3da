"""Authentication: password hashing, JWT access tokens and Google OAuth.

Import from the submodules directly (``api.auth.dependencies``,
``api.auth.tokens``, ...); the services layer depends on
``api.auth.passwords`` and the dependencies depend on the services.
"""
