"""Domain events for the SellerApplication aggregate."""

from protean.fields import DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="SellerApplication")
class ApplicationSubmitted:
    __version__ = 1

    application_id = Identifier(required=True)
    applicant_id = Identifier(required=True)
    application_type = String(required=True)
    region = String(required=True)
    submitted_at = DateTime(required=True)


@marketplace.event(part_of="SellerApplication")
class ApplicationReviewed:
    """An admin moved an application to a new status."""

    __version__ = 1

    application_id = Identifier(required=True)
    applicant_id = Identifier(required=True)
    status = String(required=True)
    reviewed_by = Identifier(required=True)
    reviewed_at = DateTime(required=True)
