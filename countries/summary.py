import logging

from PIL import Image, ImageDraw, ImageFont

from . import utils

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 800, 400
TOP_N = 5


def load_fonts():
    try:
        return ImageFont.truetype("arial.ttf", 28), ImageFont.truetype("arial.ttf", 18)
    except OSError:
        return ImageFont.load_default(), ImageFont.load_default()


def format_gdp(value):
    """Estimated GDP in billions, e.g. '$1,234.57 Billion'."""
    return f"${round((value or 0) / 1e9, 2):,} Billion"


class SummaryRenderer:
    """Draws the refresh summary PNG from whatever the cache store currently holds."""

    def __init__(self, path=None):
        self.path = path

    def render(self, store, refreshed_at=None):
        """
        Generate a summary PNG showing total countries, top 5 GDP countries,
        and last refresh timestamp. Returns the path it was written to.
        """
        path = self.path or utils.get_summary_image_path()
        status = store.get_status()
        top = store.top_by_gdp(TOP_N)
        refreshed_at = refreshed_at or status["last_refreshed_at"]

        img = Image.new("RGB", (WIDTH, HEIGHT), color="#f0f0f0")
        draw = ImageDraw.Draw(img)
        font_title, font_body = load_fonts()

        draw.text((30, 30), "Country Data API Summary", fill="#333333", font=font_title)
        draw.text((30, 90), f"Total Countries Cached: {status['total_countries']}", fill="#333333", font=font_body)
        draw.text((30, 120), f"Last Refresh: {utils.to_iso(refreshed_at) or 'never'}", fill="#333333", font=font_body)
        draw.text((30, 170), f"Top {TOP_N} Countries by Estimated GDP (USD)", fill="#333333", font=font_body)

        y = 200
        if not top:
            draw.text((40, y), "No GDP data available.", fill="gray", font=font_body)
        for index, row in enumerate(top, start=1):
            draw.text((40, y), f"{index}. {row['name']}: {format_gdp(row['estimated_gdp'])}", fill="blue", font=font_body)
            y += 30

        img.save(path, "PNG")
        logger.info("Summary image saved to %s", path)
        return path
