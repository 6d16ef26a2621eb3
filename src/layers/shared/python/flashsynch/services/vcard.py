"""vCard 3.0 export of a public card."""

import re

from flashsynch.models.card import Card, LinkType

SOCIAL_PROFILE_TYPES = {
    LinkType.LINKEDIN.value,
    LinkType.TWITTER.value,
    LinkType.INSTAGRAM.value,
    LinkType.FACEBOOK.value,
    LinkType.GITHUB.value,
    LinkType.YOUTUBE.value,
    LinkType.TIKTOK.value,
}


def escape_value(value: str) -> str:
    """Escape a vCard text value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def generate_vcard(card: Card) -> str:
    """Render a card as a vCard 3.0 document.

    Only visible links are exported, in display order. Email and phone links
    follow the card's contact visibility settings.

    Args:
        card: The card to export.

    Returns:
        vCard text with CRLF line endings.
    """
    profile = card.profile
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"FN:{escape_value(card.display_name)}",
        f"N:{escape_value(profile.last_name)};{escape_value(profile.first_name)};;"
        f"{escape_value(profile.prefix or '')};{escape_value(profile.accreditations or '')}",
    ]

    if profile.company:
        org = escape_value(profile.company)
        if profile.department:
            org += f";{escape_value(profile.department)}"
        lines.append(f"ORG:{org}")
    if profile.title:
        lines.append(f"TITLE:{escape_value(profile.title)}")
    if profile.headline:
        lines.append(f"ROLE:{escape_value(profile.headline)}")
    if profile.bio:
        lines.append(f"NOTE:{escape_value(profile.bio)}")
    if profile.avatar_url:
        lines.append(f"PHOTO;VALUE=URI:{profile.avatar_url}")

    for link in sorted((link for link in card.links if link.visible), key=lambda item: item.order):
        value = escape_value(link.value)
        if link.type == LinkType.EMAIL.value:
            if card.settings.show_email:
                lines.append(f"EMAIL;TYPE=INTERNET:{value}")
        elif link.type == LinkType.PHONE.value:
            if card.settings.show_phone:
                lines.append(f"TEL;TYPE=CELL:{value}")
        elif link.type in SOCIAL_PROFILE_TYPES:
            lines.append(f"X-SOCIALPROFILE;TYPE={link.type}:{value}")
        elif link.value.startswith(("http://", "https://")):
            lines.append(f"URL:{value}")

    lines.append("END:VCARD")
    return "\r\n".join(lines) + "\r\n"


def vcard_filename(card: Card) -> str:
    """Download file name for a card's vCard, e.g. ``ada_lovelace.vcf``."""
    name = card.profile.display_name or f"{card.profile.first_name}_{card.profile.last_name}"
    safe_name = re.sub(r"_+", "_", re.sub(r"[^a-z0-9]", "_", name.lower())).strip("_")
    return f"{safe_name or 'contact'}.vcf"
