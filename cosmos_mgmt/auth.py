"""
Service principal authentication against Azure AD.
"""
import logging

from azure.identity import ClientSecretCredential

from .constants import ARM_SCOPE
from .models import Settings
from .utils import check_and_raise_auth_error

logger = logging.getLogger(__name__)


def get_credential(settings: Settings) -> ClientSecretCredential:
    """Build a client secret credential for the service principal."""
    return ClientSecretCredential(
        tenant_id=settings.tenant_id,
        client_id=settings.client_id,
        client_secret=settings.client_secret
    )


def authenticate(settings: Settings) -> ClientSecretCredential:
    """
    Log in as the service principal and return the credential.

    ClientSecretCredential is lazy, so one token is requested up front for
    the Resource Manager scope: bad credentials fail here, before any
    client is built. The token is cached by the credential and reused by
    every management client. There is no retry.

    Raises:
        AuthError: If Azure AD rejects the credential
        Exception: Anything else from azure-identity (bad tenant id, network)
    """
    logger.info(f"Authenticating service principal {settings.client_id} in tenant {settings.tenant_id}")
    try:
        credential = get_credential(settings)
        credential.get_token(ARM_SCOPE)
    except Exception as e:
        check_and_raise_auth_error(e, "authenticate the service principal")
        raise
    logger.info("Authentication succeeded")
    return credential
