"""Open Graph meta tag scanning for post pages."""

import logging
import re
from typing import Dict, Optional

from bs4 import BeautifulSoup

from gcalagent.config.constants import OG_DESCRIPTION, OG_IMAGE, OG_SITE_NAME, OG_TITLE
from gcalagent.core.event_model import RawPost

logger = logging.getLogger(__name__)

OG_PROPERTIES = (OG_DESCRIPTION, OG_TITLE, OG_IMAGE, OG_SITE_NAME)

# "12 likes, 3 comments - someuser on May 1, 2024: "caption""
_DESCRIPTION_AUTHOR = re.compile(
    r"-\s*(?P<user>[A-Za-z0-9._]+)\s+on\s+[A-Z][a-z]+\s+\d{1,2},\s+\d{4}"
)
# "Display Name (@someuser) on Instagram" / "someuser on Instagram: ..."
_TITLE_HANDLE = re.compile(r"\(@(?P<user>[A-Za-z0-9._]+)\)")


def scan_open_graph(html: str) -> Dict[str, str]:
    """Collect the Open Graph properties we care about from an HTML page.

    The first non-empty value wins when a property repeats.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    found: Dict[str, str] = {}
    for tag in soup.find_all("meta"):
        prop = (tag.get("property") or tag.get("name") or "").strip().lower()
        if prop not in OG_PROPERTIES or prop in found:
            continue
        content = (tag.get("content") or "").strip()
        if content:
            found[prop] = content
    return found


def _author_from_tags(tags: Dict[str, str]) -> Optional[str]:
    match = _DESCRIPTION_AUTHOR.search(tags.get(OG_DESCRIPTION, ""))
    if match:
        return match.group("user")
    match = _TITLE_HANDLE.search(tags.get(OG_TITLE, ""))
    if match:
        return match.group("user")
    return tags.get(OG_SITE_NAME) or None


def post_from_html(html: str, source_url: str) -> RawPost:
    """Build a RawPost from a page's Open Graph tags.

    ``og:description`` (falling back to ``og:title``) becomes the caption,
    ``og:image`` the thumbnail. The author is read from Instagram's
    description/title shapes, else ``og:site_name``.
    """
    tags = scan_open_graph(html)
    logger.debug("Open Graph tags for %s: %s", source_url, sorted(tags))
    return RawPost(
        source_url=source_url,
        caption=tags.get(OG_DESCRIPTION) or tags.get(OG_TITLE) or "",
        author=_author_from_tags(tags),
        thumbnail_url=tags.get(OG_IMAGE) or None,
    )
