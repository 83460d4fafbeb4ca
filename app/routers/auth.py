from fastapi import APIRouter, Depends

from app.auth import get_current_user


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/profile")
def profile(user: dict = Depends(get_current_user)):
    return {"user_id": user["user_id"], "email": user["email"]}
