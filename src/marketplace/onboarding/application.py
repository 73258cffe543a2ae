"""SellerApplication aggregate: a request to become a seller or an agent."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String, Text

from marketplace.domain import marketplace


class ApplicationType(Enum):
    SELLER = "seller"
    AGENT = "agent"


class ApplicationStatus(Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


# Messages returned when an applicant submits a second application of a type
_DUPLICATE_MESSAGES = {
    ApplicationStatus.PENDING.value: "Your application is pending. Don't make duplicate applications.",
    ApplicationStatus.IN_REVIEW.value: "Application already in review",
    ApplicationStatus.APPROVED.value: "Application already approved",
    ApplicationStatus.REJECTED.value: "Application already rejected",
}


@marketplace.entity(part_of="SellerApplication")
class ReviewNote:
    author_id = Identifier(required=True)
    text = String(required=True, max_length=2000)
    created_at = DateTime()


@marketplace.aggregate
class SellerApplication:
    applicant_id = Identifier(required=True)
    application_type = String(required=True, choices=ApplicationType)
    business_name = String(max_length=200)
    region = String(required=True, max_length=100)
    district = String(max_length=100)
    details = Text()  # JSON object of free-form form answers
    status = String(choices=ApplicationStatus, default=ApplicationStatus.PENDING.value)
    notes = HasMany(ReviewNote)
    reviewed_by = Identifier()
    reviewed_at = DateTime()
    submitted_at = DateTime()

    @invariant.post
    def decided_applications_record_their_reviewer(self):
        decided = (ApplicationStatus.APPROVED.value, ApplicationStatus.REJECTED.value)
        if self.status in decided and not self.reviewed_by:
            raise ValidationError({"reviewed_by": ["A decided application must record its reviewer"]})

    @staticmethod
    def duplicate_message(status):
        return _DUPLICATE_MESSAGES.get(status, _DUPLICATE_MESSAGES[ApplicationStatus.PENDING.value])

    @classmethod
    def submit(cls, applicant_id, application_type, region, district=None, business_name=None, details=None):
        from marketplace.onboarding.events import ApplicationSubmitted

        now = datetime.now(UTC)
        application = cls(
            applicant_id=applicant_id,
            application_type=application_type,
            business_name=business_name,
            region=region,
            district=district,
            details=json.dumps(details or {}),
            status=ApplicationStatus.PENDING.value,
            submitted_at=now,
        )
        application.raise_(
            ApplicationSubmitted(
                application_id=application.id,
                applicant_id=applicant_id,
                application_type=application_type,
                region=region,
                submitted_at=now,
            )
        )
        return application

    def review(self, status, reviewer_id, note=None):
        from marketplace.onboarding.events import ApplicationReviewed

        if status not in {s.value for s in ApplicationStatus}:
            raise ValidationError({"status": ["Invalid status value"]})

        now = datetime.now(UTC)
        self.reviewed_by = reviewer_id
        self.reviewed_at = now
        self.status = status
        if note:
            self.add_note(reviewer_id, note)

        self.raise_(
            ApplicationReviewed(
                application_id=self.id,
                applicant_id=self.applicant_id,
                status=status,
                reviewed_by=reviewer_id,
                reviewed_at=now,
            )
        )

    def add_note(self, author_id, text):
        if not text or not text.strip():
            raise ValidationError({"text": ["Note text is required"]})
        self.add_notes(ReviewNote(author_id=author_id, text=text.strip(), created_at=datetime.now(UTC)))

    @property
    def is_approved(self):
        return self.status == ApplicationStatus.APPROVED.value

    @property
    def details_dict(self):
        return json.loads(self.details) if self.details else {}
