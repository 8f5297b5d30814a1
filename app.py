import os
import secrets
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import FileResponse, RedirectResponse
from jose import JWTError, jwt
from pydantic import BaseModel

from git_store import GitRepo, remote_url_for
from todo_md import Document
from todo_store import TodoStore

BASE_DIR = Path(__file__).parent

AUTH_USER        = os.getenv("AUTH_USER", "admin")
AUTH_PASS        = os.getenv("AUTH_PASS", "changeme")
SESSION_SECRET   = os.getenv("SESSION_SECRET") or secrets.token_hex(32)
SESSION_COOKIE   = "session"
SESSION_MAX_AGE  = 7 * 24 * 60 * 60
ALGORITHM        = "HS256"
REPO_DIR         = os.getenv("REPO_DIR", "/data/repo")
GH_REPO          = os.getenv("GH_REPO", "owner/todo")
GH_TOKEN         = os.getenv("GH_TOKEN", "")
REPO_URL         = os.getenv("REPO_URL") or remote_url_for(GH_REPO, GH_TOKEN)
GIT_BRANCH       = os.getenv("GIT_BRANCH", "master")
TODO_FILE        = os.getenv("TODO_FILE", "TODO.md")
GIT_TIMEOUT      = float(os.getenv("GIT_TIMEOUT", "30"))
GIT_AUTHOR_NAME  = os.getenv("GIT_AUTHOR_NAME", "todo-app")
GIT_AUTHOR_EMAIL = os.getenv("GIT_AUTHOR_EMAIL", "todo@localhost")

repo = GitRepo(
    REPO_DIR,
    REPO_URL,
    branch=GIT_BRANCH,
    filename=TODO_FILE,
    timeout=GIT_TIMEOUT,
    author_name=GIT_AUTHOR_NAME,
    author_email=GIT_AUTHOR_EMAIL,
)
store = TodoStore(repo)

app = FastAPI()


class LoginRequired(Exception):
    pass


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/login", status_code=303)


@app.on_event("startup")
def startup():
    # A failed first clone must stop the process.
    repo.ensure_ready()


def get_store() -> TodoStore:
    return store


def make_session_token(username: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=SESSION_MAX_AGE)
    return jwt.encode({"sub": username, "exp": expire}, SESSION_SECRET, algorithm=ALGORITHM)


def session_user(request: Request) -> Optional[str]:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    try:
        payload = jwt.decode(token, SESSION_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def require_login(request: Request) -> str:
    user = session_user(request)
    if user is None:
        raise LoginRequired()
    return user


def check_credentials(username: str, password: str) -> bool:
    return secrets.compare_digest(username.encode(), AUTH_USER.encode()) and secrets.compare_digest(
        password.encode(), AUTH_PASS.encode()
    )


Store = Annotated[TodoStore, Depends(get_store)]


class AddItemRequest(BaseModel):
    section: str
    text: str


class ItemRef(BaseModel):
    section: str
    index: int


class EditItemRequest(BaseModel):
    section: str
    index: int
    text: str


class SectionRequest(BaseModel):
    name: str


@app.get("/login")
def login_page(request: Request):
    if session_user(request):
        return RedirectResponse("/", status_code=303)
    return FileResponse(BASE_DIR / "login.html")


@app.post("/login")
def login(username: Annotated[str, Form()], password: Annotated[str, Form()]):
    if not check_credentials(username, password):
        return RedirectResponse("/login?error=1", status_code=303)
    resp = RedirectResponse("/", status_code=303)
    resp.set_cookie(
        SESSION_COOKIE,
        make_session_token(username),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    return resp


@app.get("/logout")
def logout():
    resp = RedirectResponse("/login", status_code=303)
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@app.post("/webhook/github")
def github_webhook(store: Store):
    store.refresh()
    return {"ok": True}


@app.get("/", dependencies=[Depends(require_login)])
def root():
    return FileResponse(BASE_DIR / "index.html")


@app.get("/api/info", dependencies=[Depends(require_login)])
def info():
    return {"repo": GH_REPO}


@app.get("/api/todos", dependencies=[Depends(require_login)])
def list_todos(store: Store) -> Document:
    return store.list()


@app.post("/api/todos", dependencies=[Depends(require_login)])
def add_todo(req: AddItemRequest, store: Store) -> Document:
    return store.add_item(req.section, req.text)


@app.put("/api/todos/toggle", dependencies=[Depends(require_login)])
def toggle_todo(req: ItemRef, store: Store) -> Document:
    return store.toggle_item(req.section, req.index)


@app.put("/api/todos/edit", dependencies=[Depends(require_login)])
def edit_todo(req: EditItemRequest, store: Store) -> Document:
    return store.edit_item(req.section, req.index, req.text)


@app.delete("/api/todos", dependencies=[Depends(require_login)])
def delete_todo(req: ItemRef, store: Store) -> Document:
    return store.remove_item(req.section, req.index)


@app.post("/api/sections", dependencies=[Depends(require_login)])
def add_section(req: SectionRequest, store: Store) -> Document:
    return store.add_section(req.name)


@app.delete("/api/sections", dependencies=[Depends(require_login)])
def delete_section(req: SectionRequest, store: Store) -> Document:
    return store.remove_section(req.name)


@app.post("/api/sync", dependencies=[Depends(require_login)])
def sync(store: Store) -> Document:
    return store.sync()
