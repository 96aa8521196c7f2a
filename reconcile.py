"""scoresheet-roster – CLI-Tool zum Abgleich von Volleyball-Spielberichten (OCR) mit Referenz-Kadern."""

import argparse
import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional

from roster import SheetType
from roster.collector import collect_sample, export_sample
from roster.gate import SwapChoice, TeamInfo
from roster.matching import MATCH_THRESHOLD
from roster.pipeline import reconcile
from roster.reader import get_reference_teams, read_ocr_text, read_reference_teams
from roster.reporter import print_summary, write_csv_report, write_html_report, write_json_report


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Abgleich eines Spielberichts (OCR-Text) gegen Referenz-Kader.',
        prog='reconcile.py',
    )
    parser.add_argument(
        '--ocr', required=True, type=Path,
        help='Pfad zur OCR-Textdatei des Spielberichts',
    )
    parser.add_argument(
        '--ref', required=True, type=Path,
        help='Pfad zur Referenz-Kaderdatei (tab-separiert)',
    )
    parser.add_argument(
        '--sheet-type', choices=[t.value for t in SheetType],
        default=SheetType.ELECTRONIC.value,
        help='Art des Spielberichts (Standard: electronic)',
    )
    parser.add_argument(
        '--team-a', help='Name des Referenzteams fuer die linke Spalte',
    )
    parser.add_argument(
        '--team-b', help='Name des Referenzteams fuer die rechte Spalte',
    )
    parser.add_argument(
        '--output', type=Path,
        help='Pfad fuer die Report-Ausgabe (CSV)',
    )
    parser.add_argument(
        '--html', action='store_true',
        help='Zusaetzlich einen HTML-Report erzeugen (neben --output)',
    )
    parser.add_argument(
        '--json', type=Path,
        help='Pfad fuer einen JSON-Report',
    )
    parser.add_argument(
        '--summary', action='store_true',
        help='Zusammenfassung auf stdout ausgeben',
    )
    parser.add_argument(
        '--threshold', type=int, default=MATCH_THRESHOLD,
        help=f'Mindestwert fuer einen Treffer, 0-100 (Standard: {MATCH_THRESHOLD})',
    )
    parser.add_argument(
        '--shirt-number-bonus', action='store_true',
        help='Gleiche Rueckennummern in der Referenz als Bonus werten',
    )
    parser.add_argument(
        '--confirm', choices=['ask', 'swap', 'keep', 'auto'], default='ask',
        help='Antwort bei unsicherer Teamzuordnung: nachfragen, tauschen, '
             'beibehalten oder automatisch (Standard: ask)',
    )
    parser.add_argument(
        '--timeout', type=float,
        help='Sekunden bis zur automatischen Zuordnung beim Nachfragen',
    )
    parser.add_argument(
        '--export-sample', type=Path,
        help='Verzeichnis fuer den Export des OCR-Samples (JSON)',
    )
    return parser


def read_line(prompt: str) -> asyncio.Future:
    """Read one line from stdin without blocking the event loop.

    Resolves to None on EOF. The reader thread is a daemon so an abandoned
    prompt (timeout) does not keep the interpreter alive.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def deliver(value: Optional[str]) -> None:
        if not future.done():
            future.set_result(value)

    def worker() -> None:
        try:
            value = input(prompt)
        except EOFError:
            value = None
        try:
            loop.call_soon_threadsafe(deliver, value)
        except RuntimeError:
            # loop already closed after a timeout
            pass

    threading.Thread(target=worker, daemon=True).start()
    return future


def make_swap_prompt(mode: str):
    """Create the confirmation channel for the chosen --confirm mode."""

    async def present_swap_choice(
        left: TeamInfo, right: TeamInfo, confidence: int,
    ) -> Optional[SwapChoice]:
        if mode == 'swap':
            return SwapChoice(swapped=True)
        if mode == 'keep':
            return SwapChoice(swapped=False)
        if mode == 'auto':
            return None

        print("\nTeamzuordnung bitte bestaetigen "
              f"(Konfidenz {confidence}%):")
        print(f"  Links:  {left.name or '?'} ({left.count} Spieler)")
        print(f"  Rechts: {right.name or '?'} ({right.count} Spieler)")
        answer = await read_line("[b]eibehalten, [t]auschen, [a]bbrechen? ")
        if answer is None:
            return None
        answer = answer.strip().lower()
        if answer.startswith('t'):
            return SwapChoice(swapped=True)
        if answer.startswith('a'):
            return None
        return SwapChoice(swapped=False)

    return present_swap_choice


def main() -> None:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    parser = build_parser()
    args = parser.parse_args()

    if args.html and not args.output:
        parser.error('--output ist erforderlich bei Verwendung von --html.')
    if not 0 <= args.threshold <= 100:
        parser.error('--threshold muss zwischen 0 und 100 liegen.')

    ocr_text = read_ocr_text(args.ocr)
    teams = read_reference_teams(args.ref, shirt_numbers=args.shirt_number_bonus)
    reference_pair = get_reference_teams(teams, args.team_a, args.team_b)

    if args.export_sample:
        export_sample(collect_sample(ocr_text, args.sheet_type), args.export_sample)

    result = asyncio.run(reconcile(
        ocr_text,
        reference_pair,
        make_swap_prompt(args.confirm),
        sheet_type=args.sheet_type,
        threshold=args.threshold,
        timeout=args.timeout,
    ))

    for warning in result.warnings:
        logging.warning("Spielbericht: %s", warning)

    if args.output:
        write_csv_report(result.mapping, args.output)
        if args.html:
            write_html_report(
                result.mapping, args.output.with_suffix('.html'),
                result.warnings, args.ocr.stem,
            )
    if args.json:
        write_json_report(result.mapping, args.json, result.warnings)
    if args.summary or not (args.output or args.json):
        print_summary(result.mapping, result.warnings, args.ocr.name)


if __name__ == '__main__':
    main()
