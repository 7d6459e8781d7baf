import httpx
from fastapi import HTTPException, status
from solardesk.core.config import settings


def _auth_headers(access_token: str = None) -> dict:
    headers = {
        "accept": "application/json",
        "content-type": "application/json",
        "apikey": settings.AUTH_API_KEY,
    }
    if access_token:
        headers["authorization"] = f"Bearer {access_token}"
    return headers


def _parse(response: httpx.Response) -> tuple:
    try:
        return response.json(), response.status_code, True
    except ValueError:
        return response.text, response.status_code, False


def login_with_password(email: str, password: str) -> tuple:
    """Exchange e-mail and password for a session at the hosted auth service.

    Returns (body, status_code, is_json)
    """
    base = settings.AUTH_BASE_URL.rstrip("/")
    url = f"{base}/auth/v1/token"
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(
                url,
                params={"grant_type": "password"},
                headers=_auth_headers(),
                json={"email": email, "password": password},
            )
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    return _parse(response)


def logout_session(access_token: str) -> tuple:
    """Revoke the session behind ``access_token``.

    Returns (body, status_code, is_json)
    """
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is required",
        )

    base = settings.AUTH_BASE_URL.rstrip("/")
    url = f"{base}/auth/v1/logout"
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(url, headers=_auth_headers(access_token))
    except httpx.HTTPError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to connect to auth service logout API: {str(exc)}",
        )

    return _parse(response)
