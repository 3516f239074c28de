import os
import logging
import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def open_session():
    """Open a requests session to the ledger host and fetch CSRF.

    Returns
    -------
    tuple[requests.Session, str]
        The initialized session and CSRF token string.

    Raises
    ------
    RuntimeError
        If ``LEDGER_BASE_FQDN`` is not set or the session cannot be
        established, including when the server returns no cookies or a CSRF
        token cannot be retrieved. Any underlying exception is re-raised as a
        ``RuntimeError`` with context.
    """
    fqdn = os.environ.get("LEDGER_BASE_FQDN")
    if not fqdn:
        raise RuntimeError("Environment variable 'LEDGER_BASE_FQDN' is not set")
    url = "https://" + fqdn

    session = requests.Session()
    try:
        response = session.get(url)
        response.raise_for_status()

        if not session.cookies:
            raise RuntimeError("Server did not return any cookies")
        # Do not log cookie values; just count for diagnostics.
        logger.debug(f"Received {len(session.cookies)} cookies from ledger host")

        csrf_token = response.cookies.get("csrftoken")
        if not csrf_token:
            raise RuntimeError("Server did not return a CSRF token")
        logger.debug("CSRF token acquired")
        return session, csrf_token

    except Exception as e:
        logger.critical(f"Error occurred while starting ledger session: {e}")
        raise RuntimeError(f"Failed to establish session: {e}") from e


def get_jwt_token(session: requests.Session) -> str:
    """Obtain a JWT access token using the operator credentials.

    Parameters
    ----------
    session : requests.Session
        A live session for the ledger host.

    Returns
    -------
    str
        The JWT access token string.

    Raises
    ------
    RuntimeError
        If required environment variables are not set.
    requests.HTTPError
        If the login request fails.
    KeyError, ValueError
        If the response payload does not include an ``"access"`` field or is malformed.
    """
    credential = {
        "username": os.environ.get("LEDGER_ADMIN_USERNAME"),
        "password": os.environ.get("LEDGER_ADMIN_PASSWORD"),
    }
    # Never log raw credentials
    logger.debug("Attempting JWT login with configured operator username")

    fqdn = os.environ.get("LEDGER_BASE_FQDN")
    if not fqdn:
        raise RuntimeError("Environment variable 'LEDGER_BASE_FQDN' is not set")
    url = "https://" + fqdn + "/api/v1/auth/jwt-token"
    response = session.post(url, json=credential)
    response.raise_for_status()

    logger.debug("JWT token response received (content redacted)")

    return response.json()["access"]
