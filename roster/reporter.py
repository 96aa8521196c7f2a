"""Report generation for team mappings (CSV, HTML, JSON, summary)."""

import csv
import json
import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from roster import MatchResult, ParsedPerson, ReferencePerson, TeamComparison, TeamMapping

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

CSV_COLUMNS = [
    'Side',
    'Section',
    'Status',
    'OCR_Team',
    'OCR_Number',
    'OCR_Role',
    'OCR_RawName',
    'OCR_LastName',
    'OCR_FirstName',
    'OCR_Libero',
    'Ref_Team',
    'Ref_ID',
    'Ref_LastName',
    'Ref_FirstName',
    'Ref_DisplayName',
    'Confidence',
]


def _sides(mapping: TeamMapping) -> list[tuple[str, TeamComparison]]:
    return [('A', mapping.team_a), ('B', mapping.team_b)]


def _result_to_row(side: str, section: str, comparison: TeamComparison,
                   result: MatchResult) -> dict:
    """Convert a MatchResult to a flat dict for CSV/HTML output."""
    ocr = result.ocr_entry
    ref = result.ref_entry
    return {
        'Side': side,
        'Section': section,
        'Status': result.status.value,
        'OCR_Team': comparison.ocr_team_name,
        'OCR_Number': '' if ocr is None or ocr.shirt_number is None else str(ocr.shirt_number),
        'OCR_Role': (ocr.role or '') if ocr else '',
        'OCR_RawName': ocr.raw_name if ocr else '',
        'OCR_LastName': ocr.last_name if ocr else '',
        'OCR_FirstName': ocr.first_name if ocr else '',
        'OCR_Libero': (ocr.libero_position or 'L') if ocr and ocr.is_libero else '',
        'Ref_Team': comparison.ref_team_name,
        'Ref_ID': ref.id if ref else '',
        'Ref_LastName': ref.last_name if ref else '',
        'Ref_FirstName': ref.first_name if ref else '',
        'Ref_DisplayName': ref.display_name if ref else '',
        'Confidence': str(result.confidence),
        # Status for row highlighting in HTML
        '_status': result.status.value,
    }


def _mapping_rows(mapping: TeamMapping) -> list[dict]:
    rows = []
    for side, comparison in _sides(mapping):
        for result in comparison.player_results:
            rows.append(_result_to_row(side, 'player', comparison, result))
        for result in comparison.official_results:
            rows.append(_result_to_row(side, 'official', comparison, result))
    return rows


def write_csv_report(mapping: TeamMapping, output_path: Path) -> None:
    """Write the final comparisons as a CSV report.

    Uses UTF-8 with BOM (utf-8-sig) and semicolon delimiter for
    compatibility with German Excel.

    Args:
        mapping: Final team mapping.
        output_path: Path for the output CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rows = _mapping_rows(mapping)
    with open(output_path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.DictWriter(
            f, fieldnames=CSV_COLUMNS, delimiter=';', extrasaction='ignore',
        )
        writer.writeheader()
        writer.writerows(rows)

    log.info("CSV-Report geschrieben: %s (%d Zeilen)", output_path, len(rows))


def write_html_report(
    mapping: TeamMapping,
    output_path: Path,
    warnings: Optional[list[str]] = None,
    title: str = '',
) -> None:
    """Write the final comparisons as an HTML report using Jinja2.

    Args:
        mapping: Final team mapping.
        output_path: Path for the output HTML file.
        warnings: Parser warnings shown above the results.
        title: Report title, usually the OCR file name.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('report.html')

    html = template.render(
        title=title,
        mapping=mapping,
        sides=[
            {
                'side': side,
                'comparison': comparison,
                'rows': [r for r in _mapping_rows(mapping) if r['Side'] == side],
            }
            for side, comparison in _sides(mapping)
        ],
        warnings=warnings or [],
        stats=compute_stats(mapping),
        columns=[c for c in CSV_COLUMNS if c != 'Side'],
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML-Report geschrieben: %s", output_path)


def person_to_dict(person: ParsedPerson | ReferencePerson | None) -> Optional[dict]:
    if person is None:
        return None
    if isinstance(person, ReferencePerson):
        return {
            'id': person.id,
            'firstName': person.first_name,
            'lastName': person.last_name,
            'displayName': person.display_name,
            'shirtNumber': person.shirt_number,
            'isLibero': person.is_libero,
            'role': person.role,
        }
    return {
        'rawName': person.raw_name,
        'lastName': person.last_name,
        'firstName': person.first_name,
        'displayName': person.display_name,
        'shirtNumber': person.shirt_number,
        'licenseStatus': person.license_status,
        'role': person.role,
        'isLibero': person.is_libero,
        'liberoPosition': person.libero_position,
    }


def _comparison_to_dict(comparison: TeamComparison) -> dict:
    def results(items):
        return [
            {
                'status': r.status.value,
                'ocrEntry': person_to_dict(r.ocr_entry),
                'refEntry': person_to_dict(r.ref_entry),
                'confidence': r.confidence,
            }
            for r in items
        ]

    return {
        'ocrTeamName': comparison.ocr_team_name,
        'refTeamName': comparison.ref_team_name,
        'playerResults': results(comparison.player_results),
        'officialResults': results(comparison.official_results),
        'counts': {
            'matched': comparison.match_count,
            'ocrOnly': comparison.ocr_only_count,
            'refOnly': comparison.ref_only_count,
            **comparison.counts(),
        },
    }


def mapping_to_dict(mapping: TeamMapping, warnings: Optional[list[str]] = None) -> dict:
    """JSON-ready representation of a final mapping plus parser warnings."""
    return {
        'swapped': mapping.swapped,
        'isConfident': mapping.is_confident,
        'confidenceScore': mapping.confidence_score,
        'userConfirmed': mapping.user_confirmed,
        'teamA': _comparison_to_dict(mapping.team_a),
        'teamB': _comparison_to_dict(mapping.team_b),
        'warnings': list(warnings or []),
    }


def write_json_report(
    mapping: TeamMapping,
    output_path: Path,
    warnings: Optional[list[str]] = None,
) -> None:
    """Write the final mapping and warnings as JSON."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(mapping_to_dict(mapping, warnings), indent=2, ensure_ascii=False),
        encoding='utf-8',
    )
    log.info("JSON-Report geschrieben: %s", output_path)


def compute_stats(mapping: TeamMapping) -> dict:
    """Compute summary statistics from a final mapping."""
    stats = {}
    for side, comparison in _sides(mapping):
        counts = comparison.counts()
        stats[side] = {
            'ocr_team': comparison.ocr_team_name,
            'ref_team': comparison.ref_team_name,
            'matched': comparison.match_count,
            'ocr_only': comparison.ocr_only_count,
            'ref_only': comparison.ref_only_count,
            **counts,
        }
    return stats


def print_summary(mapping: TeamMapping, warnings: Optional[list[str]] = None,
                  title: str = '') -> None:
    """Print a summary of the final mapping to stdout.

    Args:
        mapping: Final team mapping.
        warnings: Parser warnings.
        title: Name of the OCR file.
    """
    stats = compute_stats(mapping)

    print(f"\n=== Abgleich-Report: {title} ===")
    print(f"Teams vertauscht:          {'ja' if mapping.swapped else 'nein':>5}")
    print(f"Konfidenz Zuordnung:       {mapping.confidence_score:>4}%")
    print(f"Vom Benutzer bestaetigt:   {'ja' if mapping.user_confirmed else 'nein':>5}")
    for side in ('A', 'B'):
        s = stats[side]
        print("---")
        print(f"Team {side}: {s['ocr_team'] or '?'} -> {s['ref_team']}")
        print(f"  Spieler gefunden:        {s['players_matched']:>5}")
        print(f"  Spieler nur auf Bogen:   {s['players_ocr_only']:>5}")
        print(f"  Spieler nur in Referenz: {s['players_ref_only']:>5}")
        print(f"  Offizielle gefunden:     {s['officials_matched']:>5}")
        print(f"  Offizielle nur Bogen:    {s['officials_ocr_only']:>5}")
        print(f"  Offizielle nur Referenz: {s['officials_ref_only']:>5}")
    if warnings:
        print("---")
        print("Warnungen:")
        for warning in warnings:
            print(f"  - {warning}")
    print()
