"""Authentication interfaces following Black Box Design principles."""
import logging
import re
from typing import Protocol

from ldap3.utils.dn import escape_rdn

from ..api.models import Response

logger = logging.getLogger(__name__)

# Characters with a meaning inside a distinguished name
_DN_SPECIAL = re.compile(r'[,+"\\<>;=\x00]|^[ #]|[ ]$')
_DIRECTIVE = re.compile(r"%(.|$)")


class CredentialVerifier(Protocol):
    """Protocol for credential verification - allows swappable backends."""

    def verify(self, identity: str, password: str) -> Response:
        """
        Verify a credential pair.

        Args:
            identity: Service-specific identity (e.g. a bind DN)
            password: Password supplied by the user

        Returns:
            SUCCESS, INVALID_CREDENTIALS or SERVICE_INIT_ERROR
        """
        ...


class IdentityTemplate:
    """
    Builds the service identity from a username.

    The template must contain exactly one ``%s`` and no other ``%``
    directive (``%%`` is a literal percent sign). The username is inserted
    verbatim, its own ``%`` characters are never interpreted.
    """

    def __init__(self, template: str, escape_username: bool = False):
        directives = _DIRECTIVE.findall(template.replace("%%", ""))
        if directives != ["s"]:
            raise ValueError(
                f"Identity template must contain exactly one '%s' and no other directive: {template!r}"
            )

        self.template = template
        self.escape_username = escape_username

    def render(self, username: str) -> str:
        if _DN_SPECIAL.search(username):
            if self.escape_username:
                username = escape_rdn(username)
            else:
                logger.warning(f"Username {username!r} contains distinguished name special characters")

        return self.template % (username,)

    def __repr__(self) -> str:
        return f"IdentityTemplate({self.template!r})"
