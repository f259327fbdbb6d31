from fastapi import APIRouter, HTTPException, status

from schemas.auth import DeviceCapabilities, MethodResponse, TokenResponse, UnlockRequest
from services.auth_gate import BIOMETRIC, AuthenticationFailed, AuthGate, select_method

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/method", response_model=MethodResponse)
def unlock_method(req: DeviceCapabilities):
    """Tell the client whether to show the biometric prompt or the PIN pad."""
    method = select_method(req.has_hardware, req.is_enrolled)
    if method == BIOMETRIC:
        prompt = "Use Face ID/Touch ID or PIN to access"
    else:
        prompt = "Enter your PIN to access your medications"
    return MethodResponse(method=method, prompt=prompt)


@router.post("/unlock", response_model=TokenResponse)
def unlock(req: UnlockRequest):
    """Verify one biometric or PIN attempt and return a session token."""
    try:
        method, token = AuthGate().unlock(
            has_hardware=req.has_hardware,
            is_enrolled=req.is_enrolled,
            biometric_token=req.biometric_token,
            pin=req.pin,
        )
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message)
    return TokenResponse(access_token=token, method=method)
