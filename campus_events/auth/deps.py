from fastapi import Request, Depends, HTTPException
from sqlalchemy.orm import Session
from campus_events.db.session import get_db
from campus_events.core.security import session_user_id
from campus_events.db.models.user import User

SESSION_COOKIE = "sid"

def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = session_user_id(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid session")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return user
