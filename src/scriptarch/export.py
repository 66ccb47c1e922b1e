"""Tab-separated export of a script, ready to paste into a spreadsheet."""

import logging
import re
from pathlib import Path
from typing import Optional

from .messages import t
from .models import ScriptAnalysis

logger = logging.getLogger(__name__)

_WHITESPACE_BREAKS = re.compile(r"[\t\n\r]+")


def clean_field(text: Optional[str]) -> str:
    """Collapse tabs and line breaks to single spaces and trim."""
    return _WHITESPACE_BREAKS.sub(" ", text or "").strip()


def script_to_tsv(script: ScriptAnalysis, language: Optional[str] = None) -> str:
    """Serialize a script as one header row plus one row per scene.

    Columns are product tags, scene label with time range, visual
    description and spoken script.
    """
    headers = [
        t("export_product", language),
        t("export_scene", language),
        t("export_visual", language),
        t("export_audio", language),
    ]
    product = clean_field(", ".join(script.tags))

    rows = [
        "\t".join([
            product,
            clean_field(scene.label),
            clean_field(scene.visual_description),
            clean_field(scene.audio_script),
        ])
        for scene in script.scenes
    ]
    return "\n".join(["\t".join(headers), *rows])


def save_tsv(script: ScriptAnalysis, output_path: Path, language: Optional[str] = None) -> None:
    """Write a script's TSV export to a file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(script_to_tsv(script, language))
        f.write("\n")

    logger.info(f"Exported {script.id} to {output_path}")
