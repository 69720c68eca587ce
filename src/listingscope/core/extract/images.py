"""
Property image extraction and scoring.

Collects candidate images from galleries, standalone <img> tags and
linked data, measures them, scores them for "looks like a listing
photo" and returns the best URLs.
"""

from __future__ import annotations

import asyncio
import io
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx
from lxml.html import HtmlElement
from PIL import Image, UnidentifiedImageError

from ..config.models import ExtractionSettings
from ..normalize.parsing import absolute_url
from .document import Document
from .structured import extract_jsonld

logger = logging.getLogger(__name__)


Measurer = Callable[[str], Awaitable["tuple[int, int] | None"]]

# "ad" only as a standalone token so that "upload" or "header" pass
_AD = r"(?<![a-z])ads?(?![a-z])"

EXCLUDED_URL_RE = re.compile(
    r"logo|icon|avatar|placeholder|pixel|tracking|banner|" + _AD + r"|\.svg(?:$|\?)|\.gif(?:$|\?)",
    re.IGNORECASE,
)
SUSPICIOUS_RE = re.compile(
    r"logo|icon|banner|pixel|tracking|avatar|profile|" + _AD,
    re.IGNORECASE,
)
GENERIC_CONTENT_RE = re.compile(
    r"logo|icon|avatar|user|profile|banner|" + _AD,
    re.IGNORECASE,
)
CLASS_KEYWORDS_RE = re.compile(r"photo|image|picture|gallery|property|listing", re.IGNORECASE)
ALT_KEYWORDS_RE = re.compile(r"photo|image|property|room|kitchen|bedroom|bathroom", re.IGNORECASE)

GALLERY_QUERIES = (
    ("class", "gallery"),
    ("class", "slider"),
    ("class", "carousel"),
    ("class", "photos"),
    ("class", "images"),
    ("id", "gallery"),
    ("id", "slider"),
    ("data-testid", "gallery"),
    ("data-testid", "photos"),
)

LAZY_ATTRIBUTES = ("data-src", "data-original", "data-lazy-src")

_PIXELS_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")
_STYLE_RE = re.compile(r"(?<![-\w])(width|height)\s*:\s*(\d+(?:\.\d+)?)px", re.IGNORECASE)


@dataclass
class ImageCandidate:
    """An image URL with its measured size and relevance score."""

    url: str
    width: int
    height: int
    score: float

    @property
    def area(self) -> int:
        return self.width * self.height


# =============================================================================
# Measuring
# =============================================================================


class ImageMeasurer:
    """Downloads images off-document and reads their pixel size.

    Each measurement is bounded by ``timeout``; failures yield None.
    """

    def __init__(
        self,
        timeout: float = 3.0,
        user_agent: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "ImageMeasurer":
        if self._client is None:
            headers = {"User-Agent": self.user_agent} if self.user_agent else {}
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=headers,
            )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _fetch_size(self, url: str) -> tuple[int, int]:
        if self._client is None:
            raise RuntimeError("ImageMeasurer used outside 'async with'")
        response = await self._client.get(url)
        response.raise_for_status()
        with Image.open(io.BytesIO(response.content)) as image:
            return image.size

    async def __call__(self, url: str) -> tuple[int, int] | None:
        try:
            return await asyncio.wait_for(self._fetch_size(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Timed out measuring image {url}")
        except (httpx.HTTPError, UnidentifiedImageError, OSError) as e:
            logger.debug(f"Could not measure image {url}: {e}")
        return None


# =============================================================================
# Per-image helpers
# =============================================================================


def _largest_srcset_entry(srcset: str) -> str | None:
    best_url: str | None = None
    best_size = -1.0
    last_url: str | None = None

    for part in srcset.split(","):
        pieces = part.strip().split()
        if not pieces:
            continue
        last_url = pieces[0]
        if len(pieces) > 1 and pieces[1][-1:] in ("w", "x"):
            try:
                size = float(pieces[1][:-1])
            except ValueError:
                continue
            if size > best_size:
                best_size = size
                best_url = pieces[0]

    return best_url or last_url


def image_url(img: HtmlElement, base_url: str | None) -> str | None:
    """Best URL for an <img>: lazy attribute > largest srcset entry > src."""
    url = next((img.get(attr) for attr in LAZY_ATTRIBUTES if img.get(attr)), None)

    if not url and img.get("srcset"):
        url = _largest_srcset_entry(img.get("srcset", ""))

    if not url:
        url = img.get("src")

    if not url or url.strip().startswith("data:"):
        return None

    return absolute_url(url, base_url)


def is_excluded_url(url: str) -> bool:
    return bool(EXCLUDED_URL_RE.search(url))


def declared_size(img: HtmlElement) -> tuple[int, int] | None:
    """Size from width/height attributes or inline style pixels."""
    width = height = None

    for name, value in _STYLE_RE.findall(img.get("style", "")):
        if name.lower() == "width":
            width = float(value)
        else:
            height = float(value)

    for name in ("width", "height"):
        match = _PIXELS_RE.match(img.get(name, ""))
        if match:
            if name == "width" and width is None:
                width = float(match.group(1))
            elif name == "height" and height is None:
                height = float(match.group(1))

    if not width or not height:
        return None
    return int(width), int(height)


def score_image(
    url: str,
    width: int,
    height: int,
    *,
    class_name: str = "",
    alt: str = "",
    in_gallery: bool = False,
    settings: ExtractionSettings | None = None,
) -> float | None:
    """Relevance score for a measured image, or None when rejected.

    Images below the minimum size and images with suspicious
    keywords in class, alt or URL are always rejected.
    """
    settings = settings or ExtractionSettings()

    if width < settings.min_image_size or height < settings.min_image_size:
        return None

    if SUSPICIOUS_RE.search(f"{class_name} {alt} {url}"):
        return None

    ideal = settings.ideal_image_size
    score = max(0.0, 100 - (abs(width - ideal) + abs(height - ideal)) / 10)

    ratio = width / height
    if 1.2 <= ratio <= 2.0:
        score += 20
    if CLASS_KEYWORDS_RE.search(class_name):
        score += 15
    if ALT_KEYWORDS_RE.search(alt):
        score += 10
    if not GENERIC_CONTENT_RE.search(url):
        score += 10
    if in_gallery:
        score += 20

    return score


# =============================================================================
# Gallery detection
# =============================================================================


def _direct_image_count(container: HtmlElement) -> int:
    count = 0
    for child in container:
        if child.tag == "img":
            count += 1
        for grandchild in child:
            if grandchild.tag == "img":
                count += 1
    return count


def find_galleries(doc: Document, settings: ExtractionSettings | None = None) -> list[HtmlElement]:
    """Elements that look like photo galleries."""
    settings = settings or ExtractionSettings()
    galleries: list[HtmlElement] = []

    for attr, needle in GALLERY_QUERIES:
        for element in doc.attr_contains(attr, needle):
            if element in galleries:
                continue
            if len(element.xpath(".//img")) >= settings.gallery_min_images:
                galleries.append(element)

    if galleries:
        return galleries

    for container in doc.root.iter("div", "section", "article"):
        if _direct_image_count(container) >= settings.container_min_images:
            galleries.append(container)

    return galleries


# =============================================================================
# Linked-data images
# =============================================================================


def collect_structured_images(obj: Any, images: list[str]) -> None:
    """Recursively collect ``image`` values (string, list or {url})."""
    if isinstance(obj, list):
        for item in obj:
            collect_structured_images(item, images)
        return
    if not isinstance(obj, dict):
        return

    image = obj.get("image")
    if isinstance(image, str):
        images.append(image)
    elif isinstance(image, list):
        for item in image:
            if isinstance(item, str):
                images.append(item)
            elif isinstance(item, dict) and isinstance(item.get("url"), str):
                images.append(item["url"])
    elif isinstance(image, dict) and isinstance(image.get("url"), str):
        images.append(image["url"])

    for value in obj.values():
        if isinstance(value, (dict, list)):
            collect_structured_images(value, images)


# =============================================================================
# Extraction
# =============================================================================


@dataclass
class _PendingImage:
    element: HtmlElement
    url: str
    in_gallery: bool


async def _measure_all(urls: list[str], measurer: Measurer) -> dict[str, tuple[int, int] | None]:
    async def guarded(url: str) -> tuple[int, int] | None:
        try:
            return await measurer(url)
        except Exception:
            logger.debug(f"Image measurement failed for {url}", exc_info=True)
            return None

    sizes = await asyncio.gather(*(guarded(url) for url in urls))
    return dict(zip(urls, sizes))


async def extract_property_images(
    doc: Document,
    nodes: list[Any] | None = None,
    *,
    settings: ExtractionSettings | None = None,
    measurer: Measurer | None = None,
) -> list[str]:
    """Return up to ``settings.max_images`` listing photo URLs, best first.

    Args:
        doc: Parsed document
        nodes: Already parsed JSON-LD objects (parsed from doc if None)
        settings: Extraction thresholds
        measurer: Async callable returning (width, height) or None for
            images without declared dimensions

    Returns:
        Deduplicated image URLs ordered by score
    """
    settings = settings or ExtractionSettings()

    pending: list[_PendingImage] = []
    for gallery in find_galleries(doc, settings):
        for img in gallery.iter("img"):
            url = image_url(img, doc.base_url)
            if url and not is_excluded_url(url):
                pending.append(_PendingImage(img, url, True))

    for img in doc.root.iter("img"):
        url = image_url(img, doc.base_url)
        if url and not is_excluded_url(url):
            pending.append(_PendingImage(img, url, False))

    to_measure: list[str] = []
    for item in pending:
        if declared_size(item.element) is None and item.url not in to_measure:
            to_measure.append(item.url)

    measured: dict[str, tuple[int, int] | None] = {}
    if to_measure and settings.measure_images:
        if measurer is not None:
            measured = await _measure_all(to_measure, measurer)
        else:
            async with ImageMeasurer(settings.measure_timeout, settings.user_agent) as default:
                measured = await _measure_all(to_measure, default)

    candidates: list[ImageCandidate] = []
    for item in pending:
        size = declared_size(item.element) or measured.get(item.url)
        if size is None:
            continue
        score = score_image(
            item.url,
            size[0],
            size[1],
            class_name=item.element.get("class", ""),
            alt=item.element.get("alt", ""),
            in_gallery=item.in_gallery,
            settings=settings,
        )
        if score is not None:
            candidates.append(ImageCandidate(item.url, size[0], size[1], score))

    structured: list[str] = []
    collect_structured_images(extract_jsonld(doc) if nodes is None else nodes, structured)
    known = {c.url for c in candidates}
    for raw_url in structured:
        url = absolute_url(raw_url, doc.base_url)
        if url and url not in known:
            candidates.append(ImageCandidate(url, 0, 0, settings.structured_image_score))
            known.add(url)

    candidates.sort(key=lambda c: c.score, reverse=True)

    urls: list[str] = []
    for candidate in candidates:
        if candidate.url not in urls:
            urls.append(candidate.url)
        if len(urls) >= settings.max_images:
            break

    logger.debug(f"Selected {len(urls)} of {len(candidates)} image candidates")
    return urls


def scan_dom_images(doc: Document, limit: int = 6) -> list[str]:
    """Unscored image URLs straight from <img> src/srcset attributes."""
    urls: list[str] = []

    for img in doc.root.iter("img"):
        srcset_urls = [
            part.strip().split()[0]
            for part in img.get("srcset", "").split(",")
            if part.strip()
        ]
        for raw in [img.get("src"), *srcset_urls]:
            url = absolute_url(raw, doc.base_url)
            if url and url not in urls:
                urls.append(url)
            if len(urls) >= limit:
                return urls

    return urls
