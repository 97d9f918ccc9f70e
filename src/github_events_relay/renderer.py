"""Turn classified events into Slack notifications."""

from .events import EventPayload, classify
from .links import GITHUB_WEB_URL, EventLinks
from .models import Envelope, Notification

USERNAME_SUFFIX = "[github event]"


def render(
    envelope: Envelope, payload: EventPayload, base_url: str = GITHUB_WEB_URL
) -> Notification:
    """
    Render a classified envelope.

    Args:
        envelope: Feed record the payload was decoded from
        payload: Typed payload returned by ``classify``
        base_url: GitHub web URL used to build links

    Returns:
        Notification ready for delivery
    """
    links = EventLinks(envelope, base_url)
    return Notification(
        text=payload.text(links),
        attachments=payload.attachments(links),
        username=f"{envelope.actor.login}{USERNAME_SUFFIX}",
        icon_url=envelope.actor.avatar_url,
    )


def render_envelope(envelope: Envelope, base_url: str = GITHUB_WEB_URL) -> Notification:
    """Classify and render an envelope in one step."""
    return render(envelope, classify(envelope), base_url)
