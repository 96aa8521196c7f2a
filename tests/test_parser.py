"""Tests for roster.parser module."""

import pytest

from roster import ParsedGameSheet, SheetType
from roster.parser import (
    MAX_HEADER_ROWS,
    ParserState,
    Section,
    clean_team_name,
    find_roster_start,
    parse_electronic_sheet,
    parse_game_sheet,
    parse_libero_entry,
    split_fields,
    step,
)


def _sheet(*lines: str) -> ParsedGameSheet:
    return parse_electronic_sheet('\n'.join(lines))


HEADER = ('BTV Aarau 1\tVBC NUC', 'N.\tName of the player')


class TestHelpers:
    """Tests for field splitting and small parsers."""

    def test_split_fields_trims(self):
        assert split_fields(' 5 \t MEIER LISA \tOK ') == ['5', 'MEIER LISA', 'OK']

    def test_split_fields_keeps_leading_tabs(self):
        assert split_fields('\t\t\t8\tBONVIN JULIE\tOK') == [
            '', '', '', '8', 'BONVIN JULIE', 'OK',
        ]

    def test_clean_team_name(self):
        assert clean_team_name('A BTV Aarau 1') == 'BTV Aarau 1'
        assert clean_team_name('B VBC NUC II') == 'VBC NUC II'
        assert clean_team_name('Aarau') == 'Aarau'

    def test_parse_libero_entry(self):
        assert parse_libero_entry('2 LOOSLI ANNA STEFANIE') == (2, 'LOOSLI ANNA STEFANIE')

    def test_parse_libero_entry_without_number(self):
        assert parse_libero_entry(' LOOSLI ANNA ') == (None, 'LOOSLI ANNA')


class TestScenario:
    """The minimal three-line sheet."""

    def test_team_names_and_first_player(self):
        sheet = _sheet(*HEADER, '5\tTORTAROLO MARIA\tOK')
        assert sheet.team_a.name == 'BTV Aarau 1'
        assert sheet.team_b.name == 'VBC NUC'
        player = sheet.team_a.players[0]
        assert player.shirt_number == 5
        assert player.last_name == 'Tortarolo'
        assert player.first_name == 'Maria'
        assert player.license_status == 'OK'
        assert player.raw_name == 'TORTAROLO MARIA'
        assert player.display_name == 'Maria Tortarolo'
        assert not player.is_libero

    def test_single_team_name(self):
        state, entries = step(ParserState(), 'BTV Aarau 1')
        assert state == ParserState(Section.HEADER, 1)
        assert [(e.side, e.kind, e.value) for e in entries] == [('A', 'name', 'BTV Aarau 1')]


class TestStep:
    """Tests for single transitions of the state machine."""

    def test_signatures_forces_done_from_any_section(self):
        for section in (Section.HEADER, Section.PLAYERS, Section.LIBERO, Section.OFFICIALS):
            state, entries = step(ParserState(section), 'SIGNATURES')
            assert state.section is Section.DONE
            assert entries == []

    def test_team_captain_forces_done(self):
        state, _ = step(ParserState(Section.PLAYERS), 'TEAM CAPTAIN\tTORTAROLO MARIA')
        assert state.section is Section.DONE

    def test_done_is_terminal(self):
        state, entries = step(ParserState(Section.DONE), '5\tMEIER LISA\tOK')
        assert state.section is Section.DONE
        assert entries == []
        state, _ = step(state, 'OFFICIAL MEMBERS')
        assert state.section is Section.DONE

    def test_officials_marker(self):
        state, _ = step(ParserState(Section.PLAYERS), 'OFFICIAL MEMBERS')
        assert state.section is Section.OFFICIALS

    def test_bench_marker(self):
        state, _ = step(ParserState(Section.LIBERO), 'Admitted on the bench')
        assert state.section is Section.OFFICIALS

    def test_signatures_beat_officials(self):
        state, _ = step(ParserState(Section.PLAYERS), 'OFFICIAL MEMBERS SIGNATURES')
        assert state.section is Section.DONE

    def test_officials_beat_libero(self):
        state, _ = step(ParserState(Section.PLAYERS), 'LIBERO OFFICIAL MEMBERS')
        assert state.section is Section.OFFICIALS

    def test_libero_marker(self):
        state, _ = step(ParserState(Section.PLAYERS), 'LIBERO')
        assert state.section is Section.LIBERO

    def test_indented_libero_marker(self):
        state, _ = step(ParserState(Section.PLAYERS), '\t\t\tLIBERO')
        assert state.section is Section.LIBERO

    def test_libero_with_many_fields_is_no_marker(self):
        state, _ = step(ParserState(Section.HEADER, 1), 'N.\tName\tLIBERO\tN.\tName')
        assert state.section is Section.PLAYERS

    def test_column_header_enters_players(self):
        state, entries = step(ParserState(Section.HEADER, 1), 'N.\tName of the player')
        assert state.section is Section.PLAYERS
        assert entries == []

    def test_header_failsafe(self):
        state, _ = step(ParserState(), 'BTV Aarau 1\tVBC NUC')
        for _ in range(MAX_HEADER_ROWS - 1):
            state, _ = step(state, 'Some noise')
            assert state.section is Section.HEADER
        state, _ = step(state, 'More noise')
        assert state.section is Section.PLAYERS

    def test_player_row_both_teams(self):
        state, entries = step(
            ParserState(Section.PLAYERS),
            '5\tTORTAROLO MARIA\tOK\t3\tFAVRE CAMILLE\tOK',
        )
        assert state.section is Section.PLAYERS
        assert [(e.side, e.kind) for e in entries] == [('A', 'player'), ('B', 'player')]
        assert entries[1].value.last_name == 'Favre'

    def test_player_row_needs_number(self):
        _, entries = step(ParserState(Section.PLAYERS), 'X\tMEIER LISA\tOK')
        assert entries == []

    def test_player_row_needs_three_fields(self):
        _, entries = step(ParserState(Section.PLAYERS), '5\tMEIER LISA')
        assert entries == []

    def test_libero_row(self):
        _, entries = step(
            ParserState(Section.LIBERO),
            'L1\t2 LOOSLI ANNA STEFANIE\tOK\tL2\t6 GRAF NOEMIE\tOK',
        )
        a, b = entries[0].value, entries[1].value
        assert a.is_libero and b.is_libero
        assert a.shirt_number == 2
        assert a.last_name == 'Loosli'
        assert a.first_name == 'Anna Stefanie'
        assert a.libero_position == 'L1'
        assert b.libero_position == 'L2'

    def test_libero_unknown_position(self):
        _, entries = step(ParserState(Section.LIBERO), 'X\t2 LOOSLI ANNA\tOK')
        assert entries[0].value.libero_position is None
        assert entries[0].value.is_libero

    def test_official_row(self):
        _, entries = step(ParserState(Section.OFFICIALS), 'C\tMarco Rossi\tAC\tPierre Dubois')
        a, b = entries[0].value, entries[1].value
        assert (a.role, a.last_name, a.first_name) == ('C', 'Rossi', 'Marco')
        assert (b.role, b.last_name, b.first_name) == ('AC', 'Dubois', 'Pierre')

    def test_official_role_case_insensitive(self):
        _, entries = step(ParserState(Section.OFFICIALS), 'ac2\tUrs Brunner')
        assert entries[0].value.role == 'AC2'

    def test_official_unknown_role(self):
        _, entries = step(ParserState(Section.OFFICIALS), 'X\tUrs Brunner')
        assert entries == []


class TestFindRosterStart:
    """Tests for preamble detection."""

    def test_column_header_with_team_names(self):
        lines = ['SET 1\t25:20', 'RESULT\t3:1', 'A Aarau\tB Bern', 'N.\tName of the player']
        assert find_roster_start(lines) == (2, 2, Section.HEADER)

    def test_column_header_without_team_names(self):
        lines = ['SET 1', 'N.\tName of the player', '5\tMEIER LISA\tOK']
        assert find_roster_start(lines) == (1, -1, Section.HEADER)

    def test_player_row_fallback(self):
        lines = ['SET 1\t25:20', 'Aarau\tBern', '5\tMEIER LISA\tOK']
        assert find_roster_start(lines) == (2, 1, Section.PLAYERS)

    def test_nothing_found(self):
        assert find_roster_start(['hello', 'world']) == (0, -1, Section.HEADER)


class TestParseElectronicSheet:
    """Tests on the sample sheet and degraded input."""

    def test_sample_team_names(self, electronic_text):
        sheet = parse_electronic_sheet(electronic_text)
        assert sheet.team_a.name == 'BTV Aarau 1'
        assert sheet.team_b.name == 'VBC NUC II'

    def test_sample_players(self, electronic_text):
        sheet = parse_electronic_sheet(electronic_text)
        assert [p.last_name for p in sheet.team_a.players] == [
            'Tortarolo', 'Meier', 'Keller', 'Huber', 'Loosli',
        ]
        assert [p.last_name for p in sheet.team_b.players] == [
            'Favre', 'Bonvin', 'Rochat', 'Perret', 'Jaccard', 'Graf',
        ]

    def test_sample_team_b_only_row(self, electronic_text):
        sheet = parse_electronic_sheet(electronic_text)
        jaccard = sheet.team_b.players[4]
        assert jaccard.shirt_number == 17
        assert jaccard.first_name == 'Manon'

    def test_sample_liberos(self, electronic_text):
        sheet = parse_electronic_sheet(electronic_text)
        liberos = [p for p in sheet.team_a.players + sheet.team_b.players if p.is_libero]
        assert [(p.last_name, p.shirt_number, p.libero_position) for p in liberos] == [
            ('Loosli', 2, 'L1'), ('Graf', 6, 'L1'),
        ]

    def test_sample_officials(self, electronic_text):
        sheet = parse_electronic_sheet(electronic_text)
        assert [(o.role, o.last_name) for o in sheet.team_a.officials] == [
            ('C', 'Rossi'), ('AC', 'Brunner'),
        ]
        assert [(o.role, o.last_name) for o in sheet.team_b.officials] == [('C', 'Dubois')]

    def test_sample_skipped_preamble_warning(self, electronic_text):
        sheet = parse_electronic_sheet(electronic_text)
        assert sheet.warnings == [
            'Skipped 3 lines of non-player data (score/set information)',
        ]

    def test_lines_after_signatures_ignored(self):
        sheet = _sheet(*HEADER, '5\tTORTAROLO MARIA\tOK', 'SIGNATURES', '7\tMEIER LISA\tOK')
        assert len(sheet.team_a.players) == 1

    @pytest.mark.parametrize('text', [None, ''])
    def test_no_text(self, text):
        sheet = parse_electronic_sheet(text)
        assert sheet.warnings == ['No OCR text provided']
        assert sheet.team_a.players == []
        assert sheet.team_b.players == []

    def test_blank_lines_only(self):
        sheet = parse_electronic_sheet('\n  \n\t\n')
        assert sheet.warnings == ['OCR text contains no lines']

    def test_missing_sections_warn(self):
        sheet = _sheet(*HEADER, '5\tTORTAROLO MARIA\tOK')
        assert 'No players found for Team A' not in sheet.warnings
        assert 'No players found for Team B' in sheet.warnings
        assert any(w.startswith('No officials (coaches) found') for w in sheet.warnings)

    def test_garbage_never_raises(self):
        sheet = parse_electronic_sheet('\t\t\n%%%\nLIBERO\n\tL1\nC\n')
        assert isinstance(sheet, ParsedGameSheet)
        assert 'No players found for Team A' in sheet.warnings

    def test_indented_libero_header_keeps_liberos(self):
        sheet = _sheet(
            'Aarau\tBern',
            'N.\tName of the player',
            '5\tMEIER LISA\tOK\t3\tFAVRE CAMILLE\tOK',
            '\t\t\tLIBERO',
            'L1\t2 LOOSLI ANNA\tOK\tL1\t6 GRAF NOEMIE\tOK',
        )
        assert [p.last_name for p in sheet.team_a.players] == ['Meier', 'Loosli']
        assert [p.last_name for p in sheet.team_b.players] == ['Favre', 'Graf']
        assert sheet.team_a.players[1].is_libero


class TestParseGameSheet:
    """Tests for dialect dispatch."""

    def test_electronic_default(self):
        sheet = parse_game_sheet('\n'.join((*HEADER, '5\tTORTAROLO MARIA\tOK')))
        assert sheet.team_a.players[0].license_status == 'OK'

    def test_manuscript(self, manuscript_text):
        sheet = parse_game_sheet(manuscript_text, SheetType.MANUSCRIPT)
        assert sheet.team_a.name == 'VBC Aarau'

    def test_string_sheet_type(self, manuscript_text):
        sheet = parse_game_sheet(manuscript_text, 'manuscript')
        assert sheet.team_b.name == 'Volley Nuc'

    def test_unknown_sheet_type(self):
        with pytest.raises(ValueError):
            parse_game_sheet('x', 'typewriter')
