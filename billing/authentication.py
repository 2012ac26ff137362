"""
Token authentication for the billing API.

Kept apart from the views so that Django REST framework can import the
authentication class from settings without pulling in view modules.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """Token authentication using the ``Token`` keyword.

    Same keyword as DRF's default; the subclass gives settings a stable
    import path inside this project.
    """

    keyword = 'Token'
