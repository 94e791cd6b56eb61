"""
LDAP Bridge - HTTP Authentication Bridge for LDAP Directories

Lets a front-end proxy (nginx mail ``auth_http``, a web gateway) that
cannot speak LDAP authenticate users against a directory. The proxy
sends credentials and directory parameters in request headers; the
bridge answers with Auth-Status and, on success, echoes the routing
headers.

Directory Protocol:
1. Bind as the service account
2. Subtree search for exactly one user entry
3. Rebind as that entry with the user's password

Example Usage:
    from ldapbridge import BridgeConfig, create_app
    from aiohttp import web

    config = BridgeConfig(port=5000)
    web.run_app(create_app(config), port=config.port)

Or from the shell:
    ldap-auth-bridge --port 5000
"""

from ldapbridge.config import BridgeConfig
from ldapbridge.core.types import AuthAttempt, DirectoryOutcome, FailureReason, UserIdentity
from ldapbridge.directory.authenticator import DirectoryAuthenticator
from ldapbridge.directory.client import Ldap3Directory
from ldapbridge.gateway.server import create_app

__version__ = "0.1.0"

__all__ = [
    # Main API
    "BridgeConfig",
    "create_app",
    "DirectoryAuthenticator",
    "Ldap3Directory",
    # Types
    "AuthAttempt",
    "DirectoryOutcome",
    "FailureReason",
    "UserIdentity",
    # Metadata
    "__version__",
]
