"""Lead capture and the owner's contact workflow."""

from typing import Any

import structlog

from flashsynch.models.card import CounterName
from flashsynch.models.lead import Lead, LeadCaptureRequest, LeadDetails, LeadSource, UpdateLeadRequest
from flashsynch.repositories.card import CardRepository
from flashsynch.repositories.lead import LeadRepository
from flashsynch.repositories.user import UserRepository
from flashsynch.services.email_service import EmailService
from flashsynch.services.scan_service import RequestContext
from flashsynch.utils.exceptions import ForbiddenError, LeadCaptureDisabledError, NotFoundError

logger = structlog.get_logger()


class LeadService:
    """Creates leads from public submissions and serves them to card owners."""

    def __init__(
        self,
        email: EmailService,
        leads: LeadRepository | None = None,
        cards: CardRepository | None = None,
        users: UserRepository | None = None,
    ):
        self.email = email
        self.leads = leads or LeadRepository()
        self.cards = cards or CardRepository()
        self.users = users or UserRepository()

    def capture_lead(self, slug: str, payload: dict[str, Any], request: RequestContext) -> Lead:
        """Turn a visitor submission into a lead.

        The card and its lead-capture flag are checked before the payload is
        validated, so a disabled card rejects even malformed submissions with
        the same error. Submissions are not deduplicated.

        Args:
            slug: Slug of the card the form was shown on.
            payload: Raw submission body.
            request: Visitor request details.

        Returns:
            The stored lead.

        Raises:
            NotFoundError: If the card is missing or archived.
            LeadCaptureDisabledError: If the card does not accept leads.
            pydantic.ValidationError: If the submission is invalid.
        """
        card = self.cards.get_active_by_slug(slug)
        if card is None:
            raise NotFoundError("Card", slug)

        if not card.settings.lead_capture_enabled:
            raise LeadCaptureDisabledError()

        submission = LeadCaptureRequest.model_validate(payload)

        lead = Lead(
            card_id=card.id,
            card_owner_id=card.owner_id,
            lead=LeadDetails(
                name=submission.name,
                email=submission.email,
                phone=submission.phone,
                company=submission.company,
                notes=submission.notes,
            ),
            source=LeadSource(
                channel=submission.channel,
                referrer=request.referrer,
                ip=request.ip,
                user_agent=request.user_agent,
            ),
            consent=submission.consent,
        )
        self.leads.create_lead(lead)
        self.cards.increment_counter(card.id, CounterName.CAPTURES)

        logger.info("Lead captured", lead_id=lead.id, card_id=card.id, channel=lead.source.channel)

        try:
            owner = self.users.get_by_id(card.owner_id)
            if owner:
                self.email.send_lead_notification(
                    to_email=owner.email,
                    owner_name=owner.display_name,
                    card_name=card.display_name,
                    lead=lead,
                )
        except Exception as e:
            logger.warning("Lead notification skipped after error", lead_id=lead.id, error=str(e))

        return lead

    def list_leads(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 20,
        card_id: str | None = None,
        status: str | None = None,
    ) -> tuple[list[Lead], int]:
        """Page through an owner's leads, newest first.

        Args:
            owner_id: The card owner's user ID.
            page: 1-based page number.
            limit: Page size.
            card_id: Optional originating card filter.
            status: Optional workflow status filter.

        Returns:
            Tuple of (leads on the page, total matching leads).
        """
        leads = self.leads.list_by_owner(owner_id, card_id=card_id, status=status)
        start = (page - 1) * limit
        return leads[start : start + limit], len(leads)

    def get_lead(self, lead_id: str, requester_id: str) -> Lead:
        """Get a lead after checking the requester owns its card.

        Raises:
            NotFoundError: If the lead does not exist.
            ForbiddenError: If the requester does not own the lead.
        """
        lead = self.leads.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError("Contact", lead_id)
        if lead.card_owner_id != requester_id:
            raise ForbiddenError("You do not own this contact", resource_type="contact")
        return lead

    def update_lead(self, lead_id: str, requester_id: str, request: UpdateLeadRequest) -> Lead:
        """Update a lead's workflow status and tags.

        Args:
            lead_id: The lead ID.
            requester_id: The requesting user's ID.
            request: Validated update.

        Returns:
            The updated lead.
        """
        lead = self.get_lead(lead_id, requester_id)

        if request.status is not None:
            lead.status = request.status
        if request.tags is not None:
            lead.tags = request.tags

        updated = self.leads.update(lead)
        logger.info("Contact updated", lead_id=lead_id, status=updated.status)
        return updated
