"""FastAPI routes for accounts and seller/agent applications."""

import json

from fastapi import APIRouter, Depends, Response
from protean.utils.globals import current_domain

from marketplace.api.auth import TOKEN_COOKIE, current_actor, require_roles
from marketplace.api.schemas import (
    ApplicationEnvelope,
    ApplicationListResponse,
    ApplicationNoteRequest,
    ApplicationResponse,
    AuthResponse,
    ChangeRoleRequest,
    LoginRequest,
    RegisterRequest,
    ReviewApplicationRequest,
    StatusResponse,
    SubmitApplicationRequest,
    UserEnvelope,
    UserListResponse,
    UserResponse,
)
from marketplace.auth.login import authenticate
from marketplace.auth.tokens import Actor, issue_token
from marketplace.onboarding.application import SellerApplication
from marketplace.onboarding.review import AddApplicationNote, ReviewApplication, SubmitApplication
from marketplace.shared import settings
from marketplace.shared.errors import ForbiddenError
from marketplace.user.registration import ChangeUserRole, RegisterUser
from marketplace.user.user import Role, User


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        secure=settings.cookie_secure(),
        samesite="lax",
        max_age=settings.token_lifetime_hours() * 3600,
    )


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", status_code=201, response_model=AuthResponse)
async def register(body: RegisterRequest, response: Response) -> AuthResponse:
    command = RegisterUser(
        name=body.name,
        email=body.email,
        password=body.password,
        phone_number=body.phone_number,
        region=body.region,
        district=body.district,
    )
    user_id = current_domain.process(command, asynchronous=False)
    user = current_domain.repository_for(User).get(user_id)

    token = issue_token(user.id, user.email, user.role)
    _set_token_cookie(response, token)
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@auth_router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, response: Response) -> AuthResponse:
    token, user = authenticate(body.email, body.password)
    _set_token_cookie(response, token)
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@auth_router.post("/logout", response_model=StatusResponse)
async def logout(response: Response) -> StatusResponse:
    response.delete_cookie(TOKEN_COOKIE)
    return StatusResponse(message="Logged out")


@auth_router.get("/me", response_model=UserEnvelope)
async def me(actor: Actor = Depends(current_actor)) -> UserEnvelope:
    user = current_domain.repository_for(User).get(actor.id)
    return UserEnvelope(user=UserResponse.from_user(user))


@auth_router.patch("/users/{user_id}/role", response_model=UserEnvelope)
async def change_role(
    user_id: str,
    body: ChangeRoleRequest,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
) -> UserEnvelope:
    command = ChangeUserRole(
        actor_role=actor.role,
        user_id=user_id,
        role=body.role,
        region=body.region,
        district=body.district,
    )
    current_domain.process(command, asynchronous=False)
    user = current_domain.repository_for(User).get(user_id)
    return UserEnvelope(user=UserResponse.from_user(user))


@auth_router.get("/agents", response_model=UserListResponse)
async def list_agents(
    region: str | None = None,
    actor: Actor = Depends(current_actor),  # noqa: ARG001
) -> UserListResponse:
    agents = current_domain.repository_for(User).find_agents(region=region)
    return UserListResponse(users=[UserResponse.from_user(a) for a in agents])


# ---------------------------------------------------------------------------
# Application Router
# ---------------------------------------------------------------------------
application_router = APIRouter(prefix="/applications", tags=["applications"])


def _application_envelope(application_id) -> ApplicationEnvelope:
    application = current_domain.repository_for(SellerApplication).get(application_id)
    return ApplicationEnvelope(application=ApplicationResponse.from_application(application))


@application_router.post("", status_code=201, response_model=ApplicationEnvelope)
async def submit_application(
    body: SubmitApplicationRequest,
    actor: Actor = Depends(current_actor),
) -> ApplicationEnvelope:
    command = SubmitApplication(
        applicant_id=actor.id,
        application_type=body.application_type,
        business_name=body.business_name,
        region=body.region,
        district=body.district,
        details=json.dumps(body.details),
    )
    application_id = current_domain.process(command, asynchronous=False)
    return _application_envelope(application_id)


@application_router.get("/mine", response_model=ApplicationListResponse)
async def my_applications(actor: Actor = Depends(current_actor)) -> ApplicationListResponse:
    applications = current_domain.repository_for(SellerApplication).find_for_applicant(actor.id)
    return ApplicationListResponse(applications=[ApplicationResponse.from_application(a) for a in applications])


@application_router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status: str | None = None,
    application_type: str | None = None,
    actor: Actor = Depends(require_roles(Role.ADMIN)),  # noqa: ARG001
) -> ApplicationListResponse:
    applications = current_domain.repository_for(SellerApplication).find_all(
        status=status, application_type=application_type
    )
    return ApplicationListResponse(applications=[ApplicationResponse.from_application(a) for a in applications])


@application_router.get("/{application_id}", response_model=ApplicationEnvelope)
async def get_application(application_id: str, actor: Actor = Depends(current_actor)) -> ApplicationEnvelope:
    application = current_domain.repository_for(SellerApplication).get(application_id)
    if actor.role != Role.ADMIN.value and str(application.applicant_id) != actor.id:
        raise ForbiddenError("You are not authorized to view this application")
    return ApplicationEnvelope(application=ApplicationResponse.from_application(application))


@application_router.patch("/{application_id}/review", response_model=ApplicationEnvelope)
async def review_application(
    application_id: str,
    body: ReviewApplicationRequest,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
) -> ApplicationEnvelope:
    command = ReviewApplication(
        application_id=application_id,
        reviewer_id=actor.id,
        reviewer_role=actor.role,
        status=body.status,
        note=body.note,
    )
    current_domain.process(command, asynchronous=False)
    return _application_envelope(application_id)


@application_router.post("/{application_id}/notes", response_model=ApplicationEnvelope)
async def add_application_note(
    application_id: str,
    body: ApplicationNoteRequest,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
) -> ApplicationEnvelope:
    command = AddApplicationNote(
        application_id=application_id,
        author_id=actor.id,
        author_role=actor.role,
        text=body.text,
    )
    current_domain.process(command, asynchronous=False)
    return _application_envelope(application_id)
