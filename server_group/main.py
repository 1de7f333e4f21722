import logging
import sys
from contextlib import closing
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Cookie, Depends, FastAPI, Form, HTTPException, Query, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse
import psycopg2
import psycopg2.extras
from pydantic import BaseModel
from dotenv import load_dotenv
from jose import JWTError, jwt
from passlib.hash import bcrypt

_project_root = Path(__file__).resolve().parents[1]
if str(_project_root) not in sys.path:
    sys.path.append(str(_project_root))

from server_group import app_context
from server_group.config import load_settings
from server_group.app.routes.groups import router as group_router
from server_group.app.rendering import is_local_destination, render_page, render_template
from server_group.app.schemas.groups import UserOut


load_dotenv()

SETTINGS = load_settings()
SESSION_COOKIE_NAME = SETTINGS.session_cookie_name

logging.basicConfig(level=SETTINGS.log_level)
logger = logging.getLogger("auth")


class LoginRequest(BaseModel):
    username: str
    password: str


def get_conn():
    return psycopg2.connect(**SETTINGS.db_config)


def create_access_token(*, subject: str, expires_delta: Optional[timedelta] = None) -> str:
    payload: Dict[str, Any] = {"sub": subject}
    if expires_delta is None:
        expires_delta = timedelta(minutes=SETTINGS.jwt_exp_minutes)
    expire = datetime.utcnow() + expires_delta
    payload["exp"] = expire
    return jwt.encode(payload, SETTINGS.jwt_secret_key, algorithm=SETTINGS.jwt_algorithm)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return bcrypt.verify(password, password_hash)


def get_user_by_id(uid: int) -> Optional[UserOut]:
    with closing(get_conn()) as conn, conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute("SELECT id, name, role, created_utc FROM users WHERE id = %s", (uid,))
        row = cur.fetchone()
    if not row:
        return None
    return UserOut(**dict(row))


def get_user_with_password(identifier: str):
    lookup = identifier.strip()
    with closing(get_conn()) as conn, conn.cursor(cursor_factory=psycopg2.extras.DictCursor) as cur:
        cur.execute(
            "SELECT id, name, password_hash, role, created_utc FROM users WHERE LOWER(name) = LOWER(%s)",
            (lookup,),
        )
        row = cur.fetchone()
    return dict(row) if row else None


def resolve_user_from_session_token(session_token: str) -> Optional[UserOut]:
    try:
        payload = jwt.decode(session_token, SETTINGS.jwt_secret_key, algorithms=[SETTINGS.jwt_algorithm])
        subject = payload.get("sub")
        if subject is None:
            return None
        user_id = int(subject)
    except (JWTError, ValueError):
        return None

    return get_user_by_id(user_id)


def get_current_user(session_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME)) -> UserOut:
    if not session_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = resolve_user_from_session_token(session_token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def get_optional_current_user(
    session_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
) -> Optional[UserOut]:
    if not session_token:
        return None
    return resolve_user_from_session_token(session_token)


def authenticate(username: str, password: str) -> Optional[Dict[str, Any]]:
    user_row = get_user_with_password(username)
    if not user_row or not verify_password(password, user_row.get("password_hash")):
        logger.warning("Login failed", extra={"username": username.strip()})
        return None
    logger.info("Login succeeded", extra={"user_id": user_row["id"]})
    return user_row


def _set_session_cookie(response: Response, user_id: int) -> None:
    token = create_access_token(subject=str(user_id))
    max_age = int(timedelta(minutes=SETTINGS.jwt_exp_minutes).total_seconds())
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=SETTINGS.session_cookie_secure,
        max_age=max_age,
        path="/",
    )


def _safe_destination(destination: Optional[str]) -> str:
    return destination if is_local_destination(destination) else "/"


app = FastAPI(title="Group Site")

app.include_router(group_router)


@app.get("/user/login", response_class=HTMLResponse)
def login_form(destination: Optional[str] = Query(default=None)):
    form = render_template(
        "login.html",
        {"action": "/user/login", "destination": _safe_destination(destination)},
    )
    return HTMLResponse(render_page("Log in", {"#theme": "server_theme_prose_text", "#text": form}))


@app.post("/user/login")
def submit_login_form(
    username: str = Form(...),
    password: str = Form(...),
    destination: Optional[str] = Form(default=None),
):
    user_row = authenticate(username, password)
    if user_row is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    response = RedirectResponse(_safe_destination(destination), status_code=status.HTTP_303_SEE_OTHER)
    _set_session_cookie(response, user_row["id"])
    return response


@app.post("/api/auth/login", response_model=UserOut)
def login(payload: LoginRequest, response: Response):
    user_row = authenticate(payload.username, payload.password)
    if user_row is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    _set_session_cookie(response, user_row["id"])
    return UserOut(
        id=user_row["id"],
        name=user_row["name"],
        role=user_row["role"],
        created_utc=user_row["created_utc"],
    )


@app.post("/api/auth/logout")
def logout(response: Response):
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=SETTINGS.session_cookie_secure,
    )
    return {"ok": True}


@app.get("/api/auth/me", response_model=UserOut)
def read_current_user(current_user: UserOut = Depends(get_current_user)):
    return current_user


@app.get("/api/healthz")
def healthz():
    return {"ok": True}


app_context.configure(
    get_conn=get_conn,
    get_optional_current_user=get_optional_current_user,
    settings=SETTINGS,
)
