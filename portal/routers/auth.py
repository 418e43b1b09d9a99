from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from portal.core.exceptions import AuthenticationError
from portal.core.schemas import ApiResponse
from portal.database import get_db
from portal.models.user import User
from portal.routers.auth_deps import get_current_user
from portal.schemas.auth import LoginData, LoginRequest, PasswordChange, SessionToken, UserResponse
from portal.services import auth as auth_service
from portal.services.activity import ActivityService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login", response_model=ApiResponse[LoginData])
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == login_data.email).first()
    if not user or not user.is_active or not auth_service.verify_password(login_data.password, user.hashed_password):
        # Same answer whichever field was wrong
        ActivityService.log(db, "failed_login", f"Failed login for {login_data.email}", login_data.email, user.id if user else None)
        db.commit()
        raise AuthenticationError("Invalid email or password")

    try:
        access_token = auth_service.create_access_token(data=auth_service.build_token_claims(user))

        ActivityService.log(db, "login", f"{user.role.value} login", user.email, user.id)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Login error: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal login error. Please check server logs."
        )

    logger.info(f"User {user.email} logged in as {user.role.value}")
    return ApiResponse.ok(
        LoginData(
            user=UserResponse.model_validate(user),
            session=SessionToken(
                access_token=access_token,
                expires_in=auth_service.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            ),
        )
    )


@router.post("/logout", response_model=ApiResponse[None])
def logout(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    ActivityService.log(db, "logout", "Logged out", current_user.email, current_user.id)
    db.commit()
    return ApiResponse.ok(message="Successfully logged out")


@router.get("/me", response_model=ApiResponse[UserResponse])
def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(UserResponse.model_validate(current_user))


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Securely update current user's password."""
    if not auth_service.verify_password(data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.hashed_password = auth_service.get_password_hash(data.new_password)
    ActivityService.log(db, "security", "Changed password", current_user.email, current_user.id)
    db.commit()

    return ApiResponse.ok(message="Password updated successfully")
