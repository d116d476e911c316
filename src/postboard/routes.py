"""HTML routes: feed, posting, account pages and login/logout."""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from loguru import logger
from pydantic import ValidationError

from .auth import AuthService, check, check_not, current_account, get_auth_service
from .auth.service import SESSION_TARGET_KEY
from .core.exceptions import DuplicateAccount
from .database import Account
from .dependencies import get_post_repository, get_storage
from .repositories import PostRepository
from .schemas import MAX_PASSWORD_BYTES, Credentials
from .sessions import pop_flashes
from .storage import UploadStorage

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter()

login_required = check("/login")
anonymous_only = check_not("/")


def render(
    request: Request,
    template: str,
    status_code: int = status.HTTP_200_OK,
    **context,
) -> HTMLResponse:
    """Render a template with the pending flash messages."""
    context.setdefault("user", None)
    context["messages"] = pop_flashes(request)
    return templates.TemplateResponse(request, template, context, status_code=status_code)


def _form_error(error: ValidationError) -> str:
    """First user-facing message from a failed Credentials validation."""
    for detail in error.errors():
        if detail["type"] == "string_too_long":
            return "Name is too long"
        if detail["type"] == "value_error":
            return f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes"
    return "Name and password are required"


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    user: Optional[Account] = Depends(current_account),
    posts: PostRepository = Depends(get_post_repository),
):
    """Feed of every post, newest first."""
    return render(request, "index.html", posts=await posts.feed(), user=user)


@router.get("/account", response_class=HTMLResponse)
async def account_page(
    request: Request,
    user: Account = Depends(login_required),
    posts: PostRepository = Depends(get_post_repository),
):
    own_posts = await posts.list_by_owner(user.account_id)
    return render(request, "account.html", user=user, posts=own_posts)


@router.get("/post", response_class=HTMLResponse)
async def list_posts(
    request: Request,
    user: Account = Depends(login_required),
    posts: PostRepository = Depends(get_post_repository),
):
    return render(request, "post.html", results=await posts.list_all(), user=user)


@router.post("/post")
async def create_post(
    description: str = Form(""),
    file: Optional[UploadFile] = File(None),
    user: Account = Depends(login_required),
    posts: PostRepository = Depends(get_post_repository),
    storage: UploadStorage = Depends(get_storage),
):
    """
    Create a post, storing the optional attachment first.

    The stored object is logged but not linked to the post row.
    """
    # Browsers send an empty part when no file is chosen
    if file is not None and file.filename:
        stored = await storage.store(file)
        logger.info(
            f"Stored upload {file.filename!r} for account {user.account_id}: "
            f"bucket={stored.bucket} key={stored.key} etag={stored.etag} "
            f"version_id={stored.version_id}"
        )

    post = await posts.create(
        post_owner_id=user.account_id,
        post_description=description,
    )
    logger.debug(f"Account {user.account_id} created post {post.post_id}")
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/register", response_class=HTMLResponse, dependencies=[Depends(anonymous_only)])
async def register_form(request: Request):
    return render(request, "register.html")


@router.post("/register", dependencies=[Depends(anonymous_only)])
async def register(
    request: Request,
    name: str = Form(""),
    password: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
):
    try:
        credentials = Credentials(name=name, password=password)
    except ValidationError as e:
        return render(
            request,
            "register.html",
            status_code=status.HTTP_400_BAD_REQUEST,
            error=_form_error(e),
            name=name,
        )

    try:
        await auth.register_user(credentials.name, credentials.password)
    except DuplicateAccount as e:
        logger.warning(str(e))
        return render(
            request,
            "register.html",
            status_code=e.status_code,
            error=e.message,
            name=name,
        )
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login", response_class=HTMLResponse, dependencies=[Depends(anonymous_only)])
async def login_form(request: Request):
    return render(request, "login.html")


@router.post("/login", dependencies=[Depends(anonymous_only)])
async def login(
    request: Request,
    name: str = Form(""),
    password: str = Form(""),
    auth: AuthService = Depends(get_auth_service),
):
    target_url = request.session.get(SESSION_TARGET_KEY) or "/"
    # Not validated: malformed input simply fails like any other bad login
    credentials = Credentials.model_construct(name=name, password=password)
    return await auth.authenticate(
        request,
        credentials,
        success_redirect=target_url,
        failure_redirect="/login",
    )


@router.post("/logout")
async def logout(request: Request):
    return await AuthService.logout(request)
