"""Application submission and review: commands and handler.

Approving an application promotes the applicant in the same unit of work.
The applicant takes the application's region and district, which for an
agent becomes the operational area.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.onboarding.application import ApplicationStatus, ApplicationType, SellerApplication
from marketplace.region.regions import is_known_region
from marketplace.shared.errors import DuplicateError, ForbiddenError, InvalidInput
from marketplace.user.user import Role, User

logger = structlog.get_logger(__name__)

_ROLE_FOR_TYPE = {
    ApplicationType.SELLER.value: Role.SELLER.value,
    ApplicationType.AGENT.value: Role.AGENT.value,
}


@marketplace.command(part_of="SellerApplication")
class SubmitApplication:
    applicant_id = Identifier(required=True)
    application_type = String(required=True, choices=ApplicationType)
    business_name = String(max_length=200)
    region = String(required=True, max_length=100)
    district = String(max_length=100)
    details = Text()  # JSON object


@marketplace.command(part_of="SellerApplication")
class ReviewApplication:
    application_id = Identifier(required=True)
    reviewer_id = Identifier(required=True)
    reviewer_role = String(required=True)
    status = String(required=True, choices=ApplicationStatus)
    note = String(max_length=2000)


@marketplace.command(part_of="SellerApplication")
class AddApplicationNote:
    application_id = Identifier(required=True)
    author_id = Identifier(required=True)
    author_role = String(required=True)
    text = String(required=True, max_length=2000)


def _require_admin(role):
    if role != Role.ADMIN.value:
        raise ForbiddenError("Only admins can review applications")


@marketplace.command_handler(part_of=SellerApplication)
class ApplicationReviewHandler:
    @handle(SubmitApplication)
    def submit_application(self, command):
        if not is_known_region(command.region):
            raise InvalidInput(f"Unknown region: {command.region}", field="region")

        repo = current_domain.repository_for(SellerApplication)
        existing = repo.find_for_applicant(command.applicant_id, command.application_type)
        if existing:
            raise DuplicateError(SellerApplication.duplicate_message(existing[0].status), field="application_type")

        application = SellerApplication.submit(
            applicant_id=command.applicant_id,
            application_type=command.application_type,
            business_name=command.business_name,
            region=command.region,
            district=command.district,
            details=json.loads(command.details) if command.details else None,
        )
        repo.add(application)
        logger.info(
            "Application submitted",
            application_id=str(application.id),
            application_type=application.application_type,
        )
        return str(application.id)

    @handle(ReviewApplication)
    def review_application(self, command):
        _require_admin(command.reviewer_role)

        repo = current_domain.repository_for(SellerApplication)
        application = repo.get(command.application_id)
        application.review(command.status, command.reviewer_id, note=command.note)

        if application.is_approved:
            user_repo = current_domain.repository_for(User)
            user = user_repo.get(application.applicant_id)
            user.change_role(
                _ROLE_FOR_TYPE[application.application_type],
                region=application.region,
                district=application.district,
            )
            user_repo.add(user)
            logger.info(
                "Applicant promoted",
                application_id=str(application.id),
                user_id=str(user.id),
                role=user.role,
            )

        repo.add(application)
        return str(application.id)

    @handle(AddApplicationNote)
    def add_application_note(self, command):
        _require_admin(command.author_role)

        repo = current_domain.repository_for(SellerApplication)
        application = repo.get(command.application_id)
        application.add_note(command.author_id, command.text)
        repo.add(application)
        return str(application.id)
