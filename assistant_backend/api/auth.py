from fastapi import APIRouter, Depends, status

from assistant_backend.api.deps import get_auth_service
from assistant_backend.core.rate_limit import RateLimiter, email_key, get_rate_limiter
from assistant_backend.core.security import get_current_user_id
from assistant_backend.schemas.user_schema import (
    LoginRequest,
    MessageResponse,
    PasswordResetRequest,
    RegisterRequest,
    ResetPasswordRequest,
    ResetTokenResponse,
    TokenResponse,
    UserResponse,
    VerifyRequest,
    VerifyResetOtpRequest,
)
from assistant_backend.services.auth_service import AuthService
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.api.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ------ Register User -----
@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    # 5 attempts per hour per email
    await limiter.hit(email_key("register", body.email), limit=5, window=3600)
    logger.info("User registration attempt")
    result = await service.register(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
        date_of_birth=body.date_of_birth,
    )
    return MessageResponse(**result)


@router.post("/verify", response_model=MessageResponse)
async def verify_user(body: VerifyRequest, service: AuthService = Depends(get_auth_service)):
    result = await service.verify_registration(body.email, body.two_fa_token)
    return MessageResponse(**result)


# ------ Login / Logout -----
@router.post("/login", response_model=TokenResponse)
async def login_user(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    # Brute force guard: 10 attempts per 5 minutes per email
    await limiter.hit(email_key("login", body.email), limit=10, window=300)
    result = await service.login(body.email, body.password)
    return TokenResponse(**result)


@router.post("/logout", response_model=MessageResponse)
async def logout_user(
    user_id: int = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.logout(user_id)
    return MessageResponse(**result)


@router.get("/user", response_model=UserResponse)
async def get_user(
    user_id: int = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.get_user(user_id)
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        date_of_birth=user.date_of_birth,
        is_verified=user.is_verified,
    )


# ------ Password Reset -----
@router.post("/request-password-reset", response_model=MessageResponse)
async def request_password_reset(
    body: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    await limiter.hit(email_key("reset", body.email), limit=5, window=3600)
    result = await service.request_password_reset(body.email)
    return MessageResponse(**result)


@router.post("/verify-reset-otp", response_model=ResetTokenResponse)
async def verify_reset_otp(body: VerifyResetOtpRequest, service: AuthService = Depends(get_auth_service)):
    result = await service.verify_reset_challenge(body.email, body.otp)
    return ResetTokenResponse(message=result["message"], reset_token=result["resetToken"])


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    result = await service.complete_password_reset(
        body.reset_token,
        body.new_password,
        body.confirm_new_password,
    )
    return MessageResponse(**result)
