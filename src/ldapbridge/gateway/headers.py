"""
HTTP header names of the auth request/response protocol.

Request headers follow the nginx ``auth_http`` conventions plus the
X-Ldap-* directory parameters. Header lookup is case-insensitive.
"""

# Request
AUTH_METHOD = "Auth-Method"
AUTH_USER = "Auth-User"
AUTH_PASS = "Auth-Pass"
AUTH_SERVER = "Auth-Server"
AUTH_PORT = "Auth-Port"
X_LDAP_URL = "X-Ldap-URL"
X_LDAP_BASE_DN = "X-Ldap-BaseDN"
X_LDAP_BIND_DN = "X-Ldap-BindDN"
X_LDAP_BIND_PASS = "X-Ldap-BindPass"

# Response
AUTH_STATUS = "Auth-Status"
AUTH_WAIT = "Auth-Wait"

STATUS_OK = "OK"

# Request headers holding secrets; never logged.
SECRET_HEADERS = frozenset({AUTH_PASS.lower(), X_LDAP_BIND_PASS.lower()})
