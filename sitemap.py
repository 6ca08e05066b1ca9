"""
Sitemap generator

Offline script: reads every prompt id and creation date and writes the
site's sitemap.xml to the client's public folder and next to this file.

    python sitemap.py
"""

import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

import config
import database

logger = logging.getLogger(__name__)

HERE = os.path.dirname(os.path.abspath(__file__))
OUTPUT_PATHS = [
    os.path.join(HERE, "..", "client", "public", "sitemap.xml"),
    os.path.join(HERE, "sitemap.xml"),
]


def _url(loc: str, changefreq: str, priority: str, lastmod: Optional[str] = None) -> str:
    lines = ["  <url>", f"    <loc>{escape(loc)}</loc>"]
    if lastmod:
        lines.append(f"    <lastmod>{lastmod}</lastmod>")
    lines.append(f"    <changefreq>{changefreq}</changefreq>")
    lines.append(f"    <priority>{priority}</priority>")
    lines.append("  </url>")
    return "\n".join(lines) + "\n"


def build_sitemap(prompts: Iterable[Dict[str, Any]], base_url: str) -> str:
    base_url = base_url.rstrip("/")
    parts: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n',
        "  <!-- Homepage -->\n",
        _url(f"{base_url}/", "daily", "1.0"),
        "  <!-- Admin Page (noindex recommended) -->\n",
        _url(f"{base_url}/admin", "monthly", "0.1"),
        "  <!-- Prompt Detail Pages -->\n",
    ]
    for prompt in prompts:
        created = prompt.get("createdAt")
        lastmod = None
        if isinstance(created, datetime):
            lastmod = created.date().isoformat()
        else:
            logger.warning("Prompt %s has no usable createdAt, lastmod omitted", prompt["_id"])
        parts.append(_url(f"{base_url}/prompt/{prompt['_id']}", "weekly", "0.8", lastmod))
    parts.append("</urlset>")
    return "".join(parts)


def write_sitemap(xml: str, paths: Iterable[str] = OUTPUT_PATHS) -> List[str]:
    written = []
    for path in paths:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(xml)
        logger.info("Sitemap written: %s", os.path.normpath(path))
        written.append(path)
    return written


def main() -> int:
    try:
        database.ping()
        prompts = list(database.db["prompt"].find({}, {"_id": 1, "createdAt": 1}))
        logger.info("Found %d prompts", len(prompts))
        write_sitemap(build_sitemap(prompts, config.SITE_URL))
    except Exception:
        logger.exception("Error generating sitemap")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
