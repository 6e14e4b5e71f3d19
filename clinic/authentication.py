"""
Token authentication for the staff API.

Identity itself is managed outside this service; staff accounts only
exchange their credentials for a DRF token at ``/api/auth/login``.  The
class lives in its own module so the REST framework settings can import
it without pulling in any views.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Deactivated staff accounts are rejected by the parent class, so
    disabling a user in the admin immediately revokes API access.
    """

    keyword = 'Token'
