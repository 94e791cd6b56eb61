"""
LDAP Bridge Gateway Module

HTTP side of the bridge.

Components:
- headers: Header names of the auth protocol
- translator: Request headers -> AuthAttempt
- response: Outcome -> response headers
- server: aiohttp application and handler
"""

from ldapbridge.gateway.translator import translate
from ldapbridge.gateway.response import ResponseHeaders, render, describe_failure
from ldapbridge.gateway.server import AuthRequestHandler, create_app, run_server

__all__ = [
    "translate",
    "ResponseHeaders",
    "render",
    "describe_failure",
    "AuthRequestHandler",
    "create_app",
    "run_server",
]
