from pydantic import BaseModel


class DeviceCapabilities(BaseModel):
    has_hardware: bool = False
    is_enrolled: bool = False


class MethodResponse(BaseModel):
    method: str
    prompt: str


class UnlockRequest(DeviceCapabilities):
    biometric_token: str | None = None
    pin: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    method: str
