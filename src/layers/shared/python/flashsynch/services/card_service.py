"""Card lifecycle: creation, owner edits, archiving and public reads."""

from typing import Any

import structlog
from botocore.exceptions import ClientError
from pydantic import BaseModel as PydanticBaseModel

from flashsynch.models.card import (
    Card,
    CardLink,
    CardLinkInput,
    CardProfile,
    CardSettings,
    CardTheme,
    CounterName,
    CreateCardRequest,
    PublicCard,
    UpdateCardRequest,
)
from flashsynch.models.user import User
from flashsynch.repositories.card import CardRepository
from flashsynch.services.identifiers import allocate_identifier, card_slug_base
from flashsynch.services.short_links import ShortLinkClient
from flashsynch.utils.exceptions import ForbiddenError, NotFoundError

logger = structlog.get_logger()


class CardService:
    """Business rules around the Card document."""

    def __init__(
        self,
        short_links: ShortLinkClient,
        cards: CardRepository | None = None,
    ):
        """Initialize card service.

        Args:
            short_links: Short-link client used to enrich new links.
            cards: Card repository.
        """
        self.short_links = short_links
        self.cards = cards or CardRepository()

    def create_card(self, owner: User, request: CreateCardRequest) -> Card:
        """Create a card for ``owner`` with a freshly allocated slug.

        Theme and settings are the documented defaults overlaid with whatever
        keys the request supplied. Counters start at zero. Short links are
        requested once the slug is won, so a lost race issues none.

        Args:
            owner: The owning user.
            request: Validated create request.

        Returns:
            The persisted card.
        """
        theme = _merge(CardTheme(), request.theme)
        settings = _merge(CardSettings(), request.settings)

        def claim(slug: str) -> Card:
            card = Card(
                owner_id=owner.id,
                org_id=owner.org_id,
                slug=slug,
                mode=request.mode,
                profile=request.profile,
                links=[CardLink(**link.model_dump(exclude={"id"})) for link in request.links],
                theme=theme,
                settings=settings,
            )
            return self.cards.create_card(card)

        base = card_slug_base(request.profile.first_name, request.profile.last_name)
        card = allocate_identifier(base, self.cards.slugs, claim)
        card = self._attach_short_links(card)

        logger.info("Card created", card_id=card.id, owner_id=owner.id, slug=card.slug)
        return card

    def get_public_by_slug(self, slug: str) -> PublicCard:
        """Read an active card for a visitor and count the view.

        The view counter is incremented by the same storage call that returns
        the card, so every successful read is counted exactly once.

        Args:
            slug: The card slug.

        Returns:
            Visitor-safe projection of the card.

        Raises:
            NotFoundError: If the card is missing or archived.
        """
        card = self.cards.get_active_by_slug(slug)
        if card is None:
            raise NotFoundError("Card", slug)

        counted = self.cards.increment_counter(card.id, CounterName.VIEWS)
        if counted is None:
            # Archived between lookup and increment.
            raise NotFoundError("Card", slug)

        return counted.to_public()

    def get_active_by_slug(self, slug: str) -> Card:
        """Resolve an active card for a public write path.

        Raises:
            NotFoundError: If the card is missing or archived.
        """
        card = self.cards.get_active_by_slug(slug)
        if card is None:
            raise NotFoundError("Card", slug)
        return card

    def list_owned(self, owner_id: str) -> list[Card]:
        """List an owner's active cards, newest first."""
        return self.cards.list_active_by_owner(owner_id)

    def get_owned(self, card_id: str, requester_id: str) -> Card:
        """Get an active card after checking the requester owns it.

        Args:
            card_id: The card ID.
            requester_id: The requesting user's ID.

        Returns:
            The card.

        Raises:
            NotFoundError: If the card is missing or archived.
            ForbiddenError: If the requester is not the owner.
        """
        return ensure_owned(self.cards.get_by_id(card_id), card_id, requester_id)

    def update_owned(self, card_id: str, requester_id: str, request: UpdateCardRequest) -> Card:
        """Apply an owner's partial update.

        Nested sections merge key by key: only keys present in the request
        are written, and an explicit null clears an optional key. ``links``
        replaces the whole list; entries without a known ID are new and get
        short URLs.

        Args:
            card_id: The card ID.
            requester_id: The requesting user's ID.
            request: Validated update request.

        Returns:
            The updated card.
        """
        card = self.get_owned(card_id, requester_id)

        set_values: dict[tuple[str, ...], Any] = {}
        remove_paths: list[tuple[str, ...]] = []

        for section, model_class in (
            ("profile", CardProfile),
            ("theme", CardTheme),
            ("settings", CardSettings),
        ):
            patch = getattr(request, section)
            if patch is None:
                continue
            changes = patch.model_dump(exclude_unset=True)
            merged = model_class.model_validate({**getattr(card, section).model_dump(), **changes})
            for key in changes:
                value = getattr(merged, key)
                if value is None:
                    remove_paths.append((section, key))
                else:
                    set_values[(section, key)] = value

        if request.mode is not None:
            set_values[("mode",)] = request.mode

        if request.links is not None:
            links = self._reconcile_links(card, request.links)
            set_values[("links",)] = [link.model_dump(mode="json") for link in links]

        if not set_values and not remove_paths:
            return card

        updated = self.cards.update_fields(card.id, requester_id, set_values, remove_paths)
        logger.info(
            "Card updated",
            card_id=card.id,
            fields=sorted(".".join(path) for path in [*set_values, *remove_paths]),
        )
        return updated

    def archive_owned(self, card_id: str, requester_id: str) -> Card:
        """Archive (soft delete) an owner's card. The slug stays reserved."""
        card = self.get_owned(card_id, requester_id)
        archived = self.cards.archive(card.id, requester_id)
        logger.info("Card archived", card_id=card.id, slug=card.slug)
        return archived

    def increment_counter(self, card_id: str, counter: CounterName | str) -> Card | None:
        """Atomically add one to a card counter."""
        return self.cards.increment_counter(card_id, counter)

    def _attach_short_links(self, card: Card) -> Card:
        """Shorten a new card's web links and its public page.

        Best effort: the card is returned as created when nothing was issued
        or the follow-up write fails.
        """
        set_values: dict[tuple[str, ...], Any] = {}

        links = [self.short_links.enrich_link(link.model_copy(), card.slug) for link in card.links]
        if any(link.short_url for link in links):
            set_values[("links",)] = [link.model_dump(mode="json") for link in links]

        page = self.short_links.shorten_card_page(card.slug)
        if page:
            set_values[("short_url",)] = page.short_url
            set_values[("short_link_id",)] = page.id

        if not set_values:
            return card

        try:
            return self.cards.update_fields(card.id, card.owner_id, set_values)
        except (ClientError, NotFoundError) as e:
            logger.warning("Short links not saved", card_id=card.id, error=str(e))
            return card

    def _new_link(self, link: CardLinkInput, slug: str) -> CardLink:
        new_link = CardLink(**link.model_dump(exclude={"id"}))
        return self.short_links.enrich_link(new_link, slug)

    def _reconcile_links(self, card: Card, submitted: list[CardLinkInput]) -> list[CardLink]:
        """Build the replacement link list.

        Known IDs keep their stored short URL while the value is unchanged.
        Unknown or missing IDs are treated as new links.
        """
        links = []
        for link in submitted:
            existing = card.find_link(link.id) if link.id else None
            if existing is None:
                links.append(self._new_link(link, card.slug))
                continue

            kept = CardLink(**link.model_dump())
            if existing.value == link.value:
                kept.short_url = existing.short_url
                kept.short_link_id = existing.short_link_id
            else:
                kept = self.short_links.enrich_link(kept, card.slug)
            links.append(kept)
        return links


def _merge(defaults: PydanticBaseModel, overrides: PydanticBaseModel | None):
    """Overlay explicitly provided keys onto a defaults model."""
    if overrides is None:
        return defaults
    changes = overrides.model_dump(exclude_unset=True)
    return type(defaults).model_validate({**defaults.model_dump(), **changes})


def ensure_owned(card: Card | None, card_id: str, requester_id: str) -> Card:
    """Check that ``card`` exists, is active and belongs to the requester.

    Args:
        card: Card as loaded from storage, or None.
        card_id: Requested card ID.
        requester_id: The requesting user's ID.

    Returns:
        The card.

    Raises:
        NotFoundError: If the card is missing or archived.
        ForbiddenError: If the requester is not the owner.
    """
    if card is None:
        raise NotFoundError("Card", card_id)
    if card.owner_id != requester_id:
        logger.warning("Card access denied", card_id=card_id, requester_id=requester_id)
        raise ForbiddenError("You do not own this card", resource_type="card")
    if not card.is_active:
        raise NotFoundError("Card", card_id)
    return card
