"""Visitor interaction recording."""

from dataclasses import dataclass

import structlog
from user_agents import parse as parse_user_agent

from flashsynch.models.card import Card, CounterName
from flashsynch.models.scan import DeviceType, Scan, ScanEventType, ScanMetadata
from flashsynch.repositories.card import CardRepository
from flashsynch.repositories.scan import ScanRepository

logger = structlog.get_logger()

# Only these event types have a running counter on the card.
EVENT_COUNTERS = {
    ScanEventType.VIEW.value: CounterName.VIEWS,
    ScanEventType.CLICK.value: CounterName.CLICKS,
}

UNKNOWN_FAMILY = "Other"


@dataclass
class RequestContext:
    """Visitor request details captured opportunistically."""

    ip: str | None = None
    user_agent: str | None = None
    referrer: str | None = None


def classify_user_agent(user_agent: str | None) -> ScanMetadata:
    """Infer device type, browser and OS from a user-agent string.

    Anything that is neither a phone nor a tablet counts as desktop.

    Args:
        user_agent: Raw ``User-Agent`` header.

    Returns:
        Metadata with only the inferred fields set. Empty when there is no
        user agent.
    """
    if not user_agent:
        return ScanMetadata()

    ua = parse_user_agent(user_agent)
    if ua.is_mobile:
        device_type = DeviceType.MOBILE
    elif ua.is_tablet:
        device_type = DeviceType.TABLET
    else:
        device_type = DeviceType.DESKTOP

    browser = ua.browser.family if ua.browser.family != UNKNOWN_FAMILY else None
    os_family = ua.os.family if ua.os.family != UNKNOWN_FAMILY else None

    return ScanMetadata(device_type=device_type, browser=browser, os=os_family)


class ScanService:
    """Appends scan events and bumps the matching card counter."""

    def __init__(
        self,
        scans: ScanRepository | None = None,
        cards: CardRepository | None = None,
    ):
        self.scans = scans or ScanRepository()
        self.cards = cards or CardRepository()

    def record_event(
        self,
        card: Card,
        event_type: ScanEventType | str,
        link_id: str | None,
        request: RequestContext,
    ) -> Scan:
        """Append an immutable scan record.

        Args:
            card: The active card the visitor interacted with.
            event_type: Interaction type.
            link_id: Clicked link, if any.
            request: Visitor request details.

        Returns:
            The stored scan.
        """
        inferred = classify_user_agent(request.user_agent)
        scan = Scan(
            card_id=card.id,
            card_owner_id=card.owner_id,
            link_id=link_id,
            event_type=event_type,
            metadata=inferred.model_copy(
                update={
                    "ip": request.ip,
                    "user_agent": request.user_agent,
                    "referrer": request.referrer,
                }
            ),
        )
        return self.scans.append(scan)

    def track(
        self,
        card: Card,
        event_type: ScanEventType | str,
        link_id: str | None,
        request: RequestContext,
    ) -> Scan:
        """Record an event and increment the card counter for views and clicks.

        The append and the increment are independent writes; a failure
        between them leaves a recorded event without its increment.

        Returns:
            The stored scan.
        """
        scan = self.record_event(card, event_type, link_id, request)

        counter = EVENT_COUNTERS.get(scan.event_type)
        if counter is not None:
            self.cards.increment_counter(card.id, counter)

        logger.info(
            "Scan recorded",
            card_id=card.id,
            event_type=scan.event_type,
            device_type=scan.metadata.device_type,
        )
        return scan
