"""Queries over seller and agent applications."""

from marketplace.domain import marketplace
from marketplace.onboarding.application import SellerApplication


@marketplace.repository(part_of=SellerApplication)
class SellerApplicationRepository:
    def find_for_applicant(self, applicant_id, application_type=None) -> list[SellerApplication]:
        filters = {"applicant_id": str(applicant_id)}
        if application_type:
            filters["application_type"] = application_type
        applications = self._dao.query.filter(**filters).limit(None).all().items
        return sorted(applications, key=lambda a: a.submitted_at, reverse=True)

    def find_all(self, status=None, application_type=None) -> list[SellerApplication]:
        filters = {}
        if status:
            filters["status"] = status
        if application_type:
            filters["application_type"] = application_type
        query = self._dao.query.filter(**filters) if filters else self._dao.query
        return sorted(query.limit(None).all().items, key=lambda a: a.submitted_at, reverse=True)
