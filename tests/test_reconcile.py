"""Tests for roster.pipeline and the reconcile CLI."""

import asyncio
import json
import sys

import pytest

import reconcile
from roster import SheetType
from roster.gate import SwapChoice, TeamInfo
from roster.pipeline import reconcile as run_reconcile


def _answer(choice):
    calls = []

    async def present(left, right, confidence):
        calls.append((left, right, confidence))
        return choice

    return present, calls


class TestPipeline:
    """End-to-end runs on the sample data."""

    def test_electronic_auto_accepts(self, electronic_text, reference_teams):
        present, calls = _answer(SwapChoice(swapped=True))
        result = asyncio.run(run_reconcile(electronic_text, tuple(reference_teams), present))
        assert calls == []
        assert result.mapping.swapped is False
        assert result.mapping.team_a.ref_team_name == 'BTV Aarau 1'
        assert result.warnings == result.sheet.warnings

    def test_manuscript_asks(self, manuscript_text, reference_teams):
        present, calls = _answer(SwapChoice(swapped=False))
        result = asyncio.run(run_reconcile(
            manuscript_text, tuple(reference_teams), present,
            sheet_type=SheetType.MANUSCRIPT,
        ))
        assert len(calls) == 1
        assert result.mapping.user_confirmed is True
        assert result.mapping.team_a.counts()['players_matched'] == 4
        assert result.mapping.team_b.counts()['officials_matched'] == 1

    def test_manuscript_user_swap(self, manuscript_text, reference_teams):
        present, _ = _answer(SwapChoice(swapped=True))
        result = asyncio.run(run_reconcile(
            manuscript_text, tuple(reference_teams), present, sheet_type='manuscript',
        ))
        assert result.mapping.swapped is True
        assert result.mapping.team_a.ref_team_name == 'VBC NUC II'
        assert result.mapping.team_a.match_count == 0


class TestSwapPrompt:
    """Tests for the non-interactive --confirm modes."""

    @pytest.mark.parametrize('mode, expected', [
        ('swap', SwapChoice(swapped=True)),
        ('keep', SwapChoice(swapped=False)),
        ('auto', None),
    ])
    def test_modes(self, mode, expected):
        present = reconcile.make_swap_prompt(mode)
        info = TeamInfo(name='Aarau', count=6)
        assert asyncio.run(present(info, info, 40)) == expected


class TestMain:
    """Tests for the command line entry point."""

    def test_writes_reports(self, data_dir, tmp_path, monkeypatch):
        out = tmp_path / 'report.csv'
        monkeypatch.setattr(sys, 'argv', [
            'reconcile.py',
            '--ocr', str(data_dir / 'manuscript_sheet.txt'),
            '--ref', str(data_dir / 'reference.csv'),
            '--sheet-type', 'manuscript',
            '--confirm', 'keep',
            '--output', str(out),
            '--html',
            '--json', str(tmp_path / 'report.json'),
            '--export-sample', str(tmp_path / 'samples'),
        ])
        reconcile.main()

        assert out.exists()
        assert out.with_suffix('.html').exists()
        data = json.loads((tmp_path / 'report.json').read_text(encoding='utf-8'))
        assert data['userConfirmed'] is True
        assert len(list((tmp_path / 'samples').glob('ocr-sample-manuscript-*.json'))) == 1

    def test_summary_without_output(self, data_dir, monkeypatch, capsys):
        monkeypatch.setattr(sys, 'argv', [
            'reconcile.py',
            '--ocr', str(data_dir / 'electronic_sheet.txt'),
            '--ref', str(data_dir / 'reference.csv'),
            '--team-a', 'NUC', '--team-b', 'Aarau',
        ])
        reconcile.main()
        out = capsys.readouterr().out
        assert 'Teams vertauscht:' in out
        assert 'ja' in out

    def test_html_requires_output(self, data_dir, monkeypatch):
        monkeypatch.setattr(sys, 'argv', [
            'reconcile.py',
            '--ocr', str(data_dir / 'electronic_sheet.txt'),
            '--ref', str(data_dir / 'reference.csv'),
            '--html',
        ])
        with pytest.raises(SystemExit):
            reconcile.main()
