from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from solardesk.core.auth import SessionContext, extract_bearer_token, get_current_session
from solardesk.schemas.auth import LoginRequest
from solardesk.services.auth_service import login_with_password, logout_session


router = APIRouter()


@router.post("/login")
def login(body: LoginRequest):
    auth_data, auth_status, auth_is_json = login_with_password(body.email, body.password)
    if auth_status != 200:
        if isinstance(auth_data, dict):
            message = auth_data.get("error_description") or auth_data.get("msg") or auth_data.get("error")
        else:
            message = auth_data
        return JSONResponse({"status": "error", "message": message or "Login failed"}, status_code=401)

    return JSONResponse({"status": "success", "message": "Logged in", "data": auth_data}, status_code=200)


@router.post("/logout")
def logout(
    authorization: str = Header(..., description="Authorization header with the access token ('Bearer <token>')")
):
    """Revoke the caller's session at the auth service and relay its response."""
    body, status_code, is_json = logout_session(extract_bearer_token(authorization))
    if 200 <= status_code < 300:
        return JSONResponse({"status": "success", "message": "Logged out"}, status_code=200)
    content = body if is_json else {"raw": body}
    return JSONResponse({"status": "error", "message": "Logout failed", "data": content}, status_code=status_code)


@router.get("/session", response_model=dict)
def get_session(session: SessionContext = Depends(get_current_session)):
    """Identity and role flags for the current token"""
    return {
        "status": "success",
        "message": "Session fetched successfully",
        "data": session,
    }
