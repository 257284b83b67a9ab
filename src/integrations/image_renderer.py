#!/usr/bin/env python3
"""
Image rendering for posts.

Two kinds of images are produced, both returned as PNG data URIs:
- the score infographic, drawn locally with Pillow
- the expressive illustration, generated through the OpenAI Images API
"""

import asyncio
import base64
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

import requests
from openai import AsyncOpenAI
from PIL import Image, ImageDraw, ImageFont

from core.analysis.prompts import build_expressive_image_prompt
from core.exceptions import MediaGenerationError
from core.models.analysis import InfoImageData, Language
from core.publishing.interfaces import ImageRenderer

logger = logging.getLogger(__name__)

INFO_IMAGE_WIDTH = 600
PADDING = 60

COLOR_BACKGROUND = "#F2E8E7"
COLOR_PRIMARY = "#B8312F"
COLOR_FOREGROUND = "#3D3635"
COLOR_MUTED = "#6A5E5A"
COLOR_ACCENT = "#B8860B"
COLOR_BORDER = "#D1C7C4"

FOOTER_TEXT = "X @rmrbzongjie by @codertso"

# CJK-capable fonts commonly present on Linux and macOS hosts
SYSTEM_FONT_CANDIDATES = [
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/wqy/wqy-microhei.ttc",
    "/System/Library/Fonts/PingFang.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
]


def to_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


def _display_date(fetched_date: str, language: Language) -> str:
    """YYYY-MM-DD for Chinese, DD-MM-YYYY for English."""
    if not fetched_date:
        return "N/A"
    parts = fetched_date.split("-")
    if language == Language.EN and len(parts) == 3:
        return f"{parts[2]}-{parts[1]}-{parts[0]}"
    return fetched_date


def score_line(data: InfoImageData, language: Language) -> str:
    total = data.article_count
    if language == Language.ZH:
        return (f"习指数: {data.xi_index} 含习量：标题：{data.title_unique_mentions} / {total} "
                f"正文：{data.body_unique_mentions} / {total}")
    return (f"Xi Index: {data.xi_index} Xi Score: Title: {data.title_unique_mentions} / {total} "
            f"Body: {data.body_unique_mentions} / {total}")


class FontResolver:
    """Locates a CJK-capable TrueType font, downloading one if configured."""

    def __init__(self, font_path: Optional[str] = None, font_url: Optional[str] = None,
                 timeout: int = 30, cache_path: Optional[str] = None):
        self.font_path = font_path
        self.font_url = font_url
        self.timeout = timeout
        self.cache_path = Path(cache_path) if cache_path else Path(tempfile.gettempdir()) / "frontpage_publisher_font.ttf"
        self._resolved: Optional[str] = None
        self._searched = False

    @staticmethod
    def _loads(font_path: Path) -> bool:
        try:
            ImageFont.truetype(str(font_path), 12)
            return True
        except OSError:
            return False

    def _download(self) -> Optional[str]:
        target = self.cache_path
        if target.exists():
            if self._loads(target):
                return str(target)
            logger.warning(f"Cached font {target} is unreadable; downloading again")

        partial: Optional[Path] = None
        try:
            response = requests.get(self.font_url, timeout=self.timeout)
            response.raise_for_status()
            with tempfile.NamedTemporaryFile(dir=target.parent, suffix=".ttf", delete=False) as handle:
                partial = Path(handle.name)
                handle.write(response.content)
            if not self._loads(partial):
                logger.error(f"Font downloaded from {self.font_url} is not a loadable font")
                return None
            # Atomic within one filesystem
            os.replace(partial, target)
            partial = None
            logger.info(f"Downloaded infographic font from {self.font_url}")
            return str(target)
        except (requests.RequestException, OSError) as e:
            logger.error(f"Failed to download font from {self.font_url}: {e}")
            return None
        finally:
            if partial is not None:
                partial.unlink(missing_ok=True)

    def path(self) -> Optional[str]:
        if self._searched:
            return self._resolved
        self._searched = True

        if self.font_path and Path(self.font_path).exists():
            self._resolved = self.font_path
        elif self.font_url:
            self._resolved = self._download()

        if not self._resolved:
            self._resolved = next((p for p in SYSTEM_FONT_CANDIDATES if Path(p).exists()), None)

        if not self._resolved:
            logger.warning("No CJK font found; infographic text may not render correctly")
        return self._resolved

    def get(self, size: int) -> ImageFont.ImageFont:
        font_path = self.path()
        if font_path:
            try:
                return ImageFont.truetype(font_path, size)
            except OSError as e:
                logger.warning(f"Could not load font {font_path}: {e}")
        return ImageFont.load_default(size=size)


class InfoImageDrawer:
    """Draws the score infographic with Pillow."""

    TITLE_SIZE = 38
    SCORE_SIZE = 22
    HEADLINE_SIZE = 20
    FOOTER_SIZE = 16
    HEADLINE_LINE_HEIGHT = 28
    MAX_LINES_PER_HEADLINE = 2

    def __init__(self, fonts: FontResolver):
        self.fonts = fonts

    @staticmethod
    def wrap(draw: ImageDraw.ImageDraw, text: str, font, max_width: int, max_lines: int) -> List[str]:
        """Wrap character by character, ending the last allowed line with an ellipsis."""
        lines: List[str] = []
        line = ""
        for char in text:
            candidate = line + char
            if line and draw.textlength(candidate, font=font) > max_width:
                if len(lines) < max_lines - 1:
                    lines.append(line)
                    line = char
                    continue
                while line and draw.textlength(line + "…", font=font) > max_width:
                    line = line[:-1]
                lines.append(line + "…")
                return lines
            line = candidate
        if line:
            lines.append(line)
        return lines

    def draw(self, data: InfoImageData, language: Language) -> bytes:
        title_font = self.fonts.get(self.TITLE_SIZE)
        score_font = self.fonts.get(self.SCORE_SIZE)
        headline_font = self.fonts.get(self.HEADLINE_SIZE)
        footer_font = self.fonts.get(self.FOOTER_SIZE)

        content_width = INFO_IMAGE_WIDTH - 2 * PADDING
        measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))

        title = (f"人民日报 {_display_date(data.fetched_date, language)}" if language == Language.ZH
                 else f"People's Daily {_display_date(data.fetched_date, language)}")
        scores = self.wrap(measure, score_line(data, language), score_font, content_width, 2)
        headlines = [self.wrap(measure, f"• {headline}", headline_font, content_width, self.MAX_LINES_PER_HEADLINE)
                     for headline in data.article_titles if headline.strip()]

        height = (PADDING + self.TITLE_SIZE + 30
                  + len(scores) * (self.SCORE_SIZE + 6) + 30
                  + sum(len(lines) * self.HEADLINE_LINE_HEIGHT + 8 for lines in headlines)
                  + 30 + self.FOOTER_SIZE + PADDING)

        image = Image.new("RGB", (INFO_IMAGE_WIDTH, height), COLOR_BACKGROUND)
        draw = ImageDraw.Draw(image)

        y = PADDING
        draw.text((INFO_IMAGE_WIDTH // 2, y), title, font=title_font, fill=COLOR_PRIMARY, anchor="mt")
        y += self.TITLE_SIZE + 30

        for line in scores:
            draw.text((PADDING, y), line, font=score_font, fill=COLOR_ACCENT)
            y += self.SCORE_SIZE + 6
        y += 12
        draw.line([(PADDING, y), (INFO_IMAGE_WIDTH - PADDING, y)], fill=COLOR_BORDER, width=1)
        y += 18

        for lines in headlines:
            for line in lines:
                draw.text((PADDING, y), line, font=headline_font, fill=COLOR_FOREGROUND)
                y += self.HEADLINE_LINE_HEIGHT
            y += 8

        y += 30
        draw.text((INFO_IMAGE_WIDTH // 2, y), FOOTER_TEXT, font=footer_font, fill=COLOR_MUTED, anchor="mt")

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


class NewspaperImageRenderer(ImageRenderer):
    """ImageRenderer combining the Pillow infographic and OpenAI illustrations."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, image_model: str = "gpt-image-1",
                 fonts: Optional[FontResolver] = None, image_size: str = "1024x1536"):
        self.client = client
        self.image_model = image_model
        self.image_size = image_size
        self.drawer = InfoImageDrawer(fonts or FontResolver())

    async def render_info(self, data: InfoImageData, language: Language) -> str:
        """Render the infographic on a worker thread."""
        try:
            png = await asyncio.to_thread(self.drawer.draw, data, Language(language))
        except (OSError, ValueError) as e:
            raise MediaGenerationError(f"info image ({Language(language).value})", e) from e
        logger.info(f"Rendered {Language(language).value} infographic ({len(png)} bytes)")
        return to_data_uri(png)

    async def render_expressive(self, text: str, language: Language,
                                titles_hint: Optional[str] = None) -> str:
        """Generate a text-free illustration for the commentary."""
        if self.client is None:
            raise MediaGenerationError("expressive image", ValueError("OpenAI client not configured"))
        if not text or not text.strip():
            raise MediaGenerationError("expressive image", ValueError("No commentary to illustrate"))

        prompt = build_expressive_image_prompt(text, Language(language).value, titles_hint)
        try:
            response = await self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                size=self.image_size,
                n=1
            )
            image = response.data[0]
            if getattr(image, "b64_json", None):
                png = base64.b64decode(image.b64_json)
            elif getattr(image, "url", None):
                png = await asyncio.to_thread(self._download_image, image.url)
            else:
                raise ValueError("Image API returned neither data nor URL")
        except Exception as e:
            raise MediaGenerationError("expressive image", e) from e

        logger.info(f"Generated expressive image with {self.image_model} ({len(png)} bytes)")
        return to_data_uri(png)

    @staticmethod
    def _download_image(url: str) -> bytes:
        response = requests.get(url, timeout=60)
        response.raise_for_status()
        return response.content
