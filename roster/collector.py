"""Collect OCR samples with parse results for improving the parsers."""

import json
import logging
import re
import secrets
from datetime import datetime, timezone
from pathlib import Path

from roster import ParsedGameSheet, ParsedTeam, SheetType
from roster.parser import parse_game_sheet
from roster.reporter import person_to_dict

log = logging.getLogger(__name__)

_PLAYER_LIKE_RE = re.compile(r'^\d{1,2}[\s\t.:_-]+[A-Za-zÀ-ÿ]')


def calculate_stats(ocr_text: str) -> dict:
    """Count lines, tab usage, player-like rows and section markers."""
    lines = [line for line in ocr_text.split('\n') if line.strip()]
    tab_lines = [line for line in lines if '\t' in line]
    upper_lines = [line.upper() for line in lines]

    return {
        'totalLines': len(lines),
        'tabSeparatedLines': len(tab_lines),
        'tabLineRatio': round(len(tab_lines) / len(lines), 2) if lines else 0,
        'playerLikeLines': sum(1 for line in lines if _PLAYER_LIKE_RE.match(line.strip())),
        'hasOfficialMarker': any('OFFICIAL' in line for line in upper_lines),
        'hasLiberoMarker': any('LIBERO' in line for line in upper_lines),
        'hasSignatureMarker': any('SIGNATURE' in line for line in upper_lines),
        'charCount': len(ocr_text),
    }


def _team_to_dict(team: ParsedTeam) -> dict:
    return {
        'name': team.name,
        'players': [person_to_dict(p) for p in team.players],
        'officials': [person_to_dict(p) for p in team.officials],
    }


def sheet_to_dict(sheet: ParsedGameSheet) -> dict:
    """JSON-ready representation of a parsed game sheet."""
    return {
        'teamA': _team_to_dict(sheet.team_a),
        'teamB': _team_to_dict(sheet.team_b),
        'warnings': list(sheet.warnings),
    }


def collect_sample(ocr_text: str, sheet_type: SheetType | str) -> dict:
    """Bundle OCR text, parse result and statistics into one sample.

    Args:
        ocr_text: Full OCR text.
        sheet_type: Scoresheet dialect used for parsing.

    Returns:
        Sample dict ready for JSON export.
    """
    sheet_type = SheetType(sheet_type)
    sheet = parse_game_sheet(ocr_text, sheet_type)
    now = datetime.now(timezone.utc)

    return {
        'id': f"sample-{int(now.timestamp() * 1000)}-{secrets.token_hex(3)}",
        'timestamp': now.isoformat(),
        'sheetType': sheet_type.value,
        'fullText': ocr_text,
        'parsedResult': sheet_to_dict(sheet),
        'stats': calculate_stats(ocr_text or ''),
    }


def export_sample(sample: dict, directory: Path) -> Path:
    """Write a sample as ``ocr-sample-<sheetType>-<id>.json`` into *directory*."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"ocr-sample-{sample['sheetType']}-{sample['id']}.json"
    path.write_text(json.dumps(sample, indent=2, ensure_ascii=False), encoding='utf-8')
    log.info("OCR-Sample exportiert: %s", path)
    return path
