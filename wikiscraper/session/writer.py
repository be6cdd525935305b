"""Write a finished session to disk.

Layout::

    <output_root>/<keyword|batch>_<YYYYmmdd_HHMMSS>/
        RESUME_RECHERCHE.md
        <Article title>/
            data.json  article.md  resume.txt  sections.txt  liens.txt  images.txt
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path
from typing import List

from wikiscraper.scraper.models import WikipediaPage
from wikiscraper.session.models import SearchSession

SUMMARY_FILENAME = "RESUME_RECHERCHE.md"
MAX_FILENAME_LENGTH = 50
SHORT_SUMMARY_LENGTH = 300
SECTIONS_PREVIEW = 5

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_WINDOWS_RESERVED = {"CON", "PRN", "AUX", "NUL"} | {f"{p}{i}" for p in ("COM", "LPT") for i in range(1, 10)}


def sanitize_filename(name: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """Turn *name* into a safe, non-empty file or folder name of at most *max_length* chars."""
    cleaned = _ILLEGAL_CHARS.sub("_", name)
    cleaned = " ".join(cleaned.split())[:max_length].rstrip(". ")
    if cleaned.split(".")[0].upper() in _WINDOWS_RESERVED:
        cleaned = ("_" + cleaned)[:max_length]
    return cleaned or "sans_titre"


def _format_date(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y à %H:%M:%S")


def _unique_dir(parent: Path, name: str) -> Path:
    candidate = parent / name
    i = 1
    while candidate.exists():
        candidate = parent / f"{name}_{i}"
        i += 1
    return candidate


# ---------------------------------------------------------------------------
# Per-article documents
# ---------------------------------------------------------------------------

def render_article(page: WikipediaPage, generated_at: datetime) -> str:
    """Markdown view of one record."""
    lines = [
        f"# {page.title or page.url}",
        "",
        f"**Source:** [Wikipedia]({page.url})  ",
        f"**Date:** {_format_date(generated_at)}  ",
        "",
        "## Résumé",
        "",
        page.summary or "*Résumé non disponible*",
        "",
    ]
    for section in page.sections:
        lines += [f"## {section}", ""]
    if page.links:
        lines += ["## Liens", ""] + [f"- <{link}>" for link in page.links] + [""]
    if page.images:
        lines += ["## Images", ""] + [f"- ![]({image})" for image in page.images] + [""]
    return "\n".join(lines)


def write_article(page: WikipediaPage, folder: Path, generated_at: datetime) -> None:
    """Write the six per-article files into *folder* (created if missing)."""
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "data.json").write_text(
        json.dumps(page.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
    )
    (folder / "article.md").write_text(render_article(page, generated_at), encoding="utf-8")
    (folder / "resume.txt").write_text(
        f"Titre: {page.title}\n\nURL: {page.url}\n\nRésumé:\n{page.summary}\n",
        encoding="utf-8",
    )
    (folder / "sections.txt").write_text("\n".join(page.sections), encoding="utf-8")
    (folder / "liens.txt").write_text("\n".join(page.links), encoding="utf-8")
    (folder / "images.txt").write_text("\n".join(page.images), encoding="utf-8")


# ---------------------------------------------------------------------------
# Session summary
# ---------------------------------------------------------------------------

def render_summary(
    records: List[WikipediaPage],
    folder_names: List[str],
    keyword: str | None,
    generated_at: datetime,
) -> str:
    """Cross-article summary: table, short summaries and global statistics."""
    count = len(records)
    total_sections = sum(len(r.sections) for r in records)
    total_links = sum(len(r.links) for r in records)
    total_images = sum(len(r.images) for r in records)
    total_chars = sum(len(r.summary) for r in records)

    if keyword:
        lines = [f'# 🔍 Résumé de recherche : "{keyword}"', ""]
    else:
        lines = ["# 📚 Résumé de scraping", ""]
    lines += [
        f"**Date** : {_format_date(generated_at)}",
        "",
        f"**Nombre d'articles** : {count}",
        "",
        "---",
        "",
        "## 📋 Articles scrapés",
        "",
        "| # | Article | Sections | Liens | Images | Dossier |",
        "|---|---------|----------|-------|--------|---------|",
    ]
    for i, (record, folder_name) in enumerate(zip(records, folder_names), start=1):
        title = (record.title or record.url).replace("|", "\\|")
        lines.append(
            f"| {i} | [{title}]({record.url}) | {len(record.sections)} | "
            f"{len(record.links)} | {len(record.images)} | [📁](<./{folder_name}/article.md>) |"
        )

    lines += ["", "---", "", "## 📖 Résumés des articles", ""]
    for i, (record, folder_name) in enumerate(zip(records, folder_names), start=1):
        lines += [f"### {i}. {record.title or record.url}", "", f"**URL** : [{record.title}]({record.url})", ""]
        if record.summary:
            short = record.summary
            if len(short) > SHORT_SUMMARY_LENGTH:
                short = short[:SHORT_SUMMARY_LENGTH] + "..."
            lines += [short, "", f"> 📄 [Lire l'article complet](<./{folder_name}/article.md>)", ""]
        else:
            lines += ["*Résumé non disponible*", "", f"> 📄 [Consulter les données](<./{folder_name}/>)", ""]
        if record.sections:
            preview = ", ".join(record.sections[:SECTIONS_PREVIEW])
            extra = len(record.sections) - SECTIONS_PREVIEW
            if extra > 0:
                preview += f" (et {extra} autres...)"
            lines += [f"**Sections principales** : {preview}", ""]
        lines += ["---", ""]

    lines += [
        "## 📊 Statistiques globales",
        "",
        "```",
        f"Total articles       : {count}",
        f"Total sections       : {total_sections}",
        f"Total liens          : {total_links}",
        f"Total images         : {total_images}",
        f"Moyenne sections     : {total_sections / count:.1f}",
        f"Moyenne liens        : {total_links / count:.1f}",
        f"Moyenne images       : {total_images / count:.1f}",
        f"Total caractères     : {total_chars}",
        "```",
        "",
    ]
    return "\n".join(lines)


def write_session(session: SearchSession) -> Path:
    """Write every record and the summary; return the session folder.

    Raises:
        ValueError: If the session holds no records.
    """
    if not session.records:
        raise ValueError("cannot write a session without records")

    stamp = session.started_at.strftime("%Y%m%d_%H%M%S")
    folder = session.output_root / f"{sanitize_filename(session.name)}_{stamp}"
    folder.mkdir(parents=True, exist_ok=True)
    generated_at = datetime.now()

    folder_names: List[str] = []
    for record in session.records:
        article_dir = _unique_dir(folder, sanitize_filename(record.title or record.url))
        write_article(record, article_dir, generated_at)
        folder_names.append(article_dir.name)
        print(f"[writer] ✓ {record.title!r} → {article_dir}")

    summary = render_summary(session.records, folder_names, session.keyword, generated_at)
    (folder / SUMMARY_FILENAME).write_text(summary, encoding="utf-8")
    session.folder = folder
    return folder
