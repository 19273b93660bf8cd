"""Test the POSCAR and KPOINTS diagnostic rules."""

from __future__ import annotations

from vaspsupport.errors import Severity
from vaspsupport.kpoints import KpointsBlock, parse_kpoints
from vaspsupport.linting import lint_kpoints, lint_poscar, lint_poscar_line
from vaspsupport.poscar import PoscarBlock, parse_poscar

REMAINDER_IGNORED = (
    "The remainder of this line is ignored by VASP. "
    "Consider placing a '#' or '!' in front to make the intention clearer."
)


def _messages(diagnostics):
    return [d.message for d in diagnostics]


def _lint(poscar_line, block, text):
    return lint_poscar_line(poscar_line(block, text))


class TestLatticeVector:
    def test_valid(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.LATTICE, "0.0 0.5 0.5") == []

    def test_extra_numbers_warn(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.LATTICE, "0.5 0.5 0.5 1 2 3")
        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.severity is Severity.WARNING
        assert d.message == REMAINDER_IGNORED
        assert d.span.start.column == 13
        assert d.span.end.column == 18

    def test_marked_comment_is_silent(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.LATTICE, "1 0 0 # a1") == []
        assert _lint(poscar_line, PoscarBlock.LATTICE, "1 0 0 !a1") == []

    def test_letters(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.LATTICE, "a b c")
        assert _messages(diagnostics) == ["Lattice vector component must be a number."] * 3
        assert all(d.severity is Severity.ERROR for d in diagnostics)
        assert [d.span.start.column for d in diagnostics] == [1, 3, 5]

    def test_too_few(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.LATTICE, "1 2")
        assert _messages(diagnostics) == ["Lattice vector must consist of 3 numbers. Too few given."]
        assert diagnostics[0].span.start.column == 1
        assert diagnostics[0].span.end.column == 4

    def test_empty(self, poscar_line):
        line = poscar_line(PoscarBlock.LATTICE, "")
        diagnostics = lint_poscar_line(line)
        assert _messages(diagnostics) == ["Line must not be empty."]
        assert diagnostics[0].span == line.line.span_with_break

    def test_other_vector_labels(self, poscar_line):
        assert _messages(_lint(poscar_line, PoscarBlock.POSITIONS, "x 0 0")) == [
            "Position vector component must be a number."
        ]
        assert _messages(_lint(poscar_line, PoscarBlock.VELOCITIES, "x 0 0")) == [
            "Velocity vector component must be a number."
        ]
        assert _messages(_lint(poscar_line, PoscarBlock.LATT_VELOCITIES_VELS, "x 0 0")) == [
            "Lattice velocity component must be a number."
        ]


class TestScaling:
    def test_single(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.SCALING, "3.57") == []

    def test_three(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.SCALING, "1 1 2") == []

    def test_two(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.SCALING, "1 2")
        assert _messages(diagnostics) == ["The number of scaling factors must be either 1 or 3."]

    def test_non_positive_of_three(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.SCALING, "1 -1 2")
        assert _messages(diagnostics) == ["Individual scaling factors must be positive."]
        assert diagnostics[0].span.start.column == 3

    def test_not_a_number(self, poscar_line):
        assert _messages(_lint(poscar_line, PoscarBlock.SCALING, "abc")) == [
            "Scaling factor must be a number."
        ]

    def test_trailing_text(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.SCALING, "1.0 x y")
        assert [d.severity for d in diagnostics] == [Severity.WARNING]


class TestSpeciesAndCounts:
    def test_invalid_species_name(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.SPECIES_NAMES, "Si 2")
        assert _messages(diagnostics) == ["Species name '2' is invalid."]

    def test_counts_without_number(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.NUM_ATOMS, "x")
        assert "Number of atoms needs to be a positive integer." in _messages(diagnostics)

    def test_counts_with_trailing_text(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.NUM_ATOMS, "2 3 x")
        assert _messages(diagnostics) == [REMAINDER_IGNORED]

    def test_valid_file_is_clean(self, cubic_bn):
        assert lint_poscar(parse_poscar(cubic_bn)) == []

    def test_species_count_mismatch(self, cubic_bn):
        source = cubic_bn.replace("\n1 1\n", "\n1 1 1\n")
        lines = parse_poscar(source)
        diagnostics = lint_poscar(lines)
        assert _messages(diagnostics) == [
            "Number of atoms must be specified for each atomic species."
        ]
        num_atoms = next(line for line in lines if line.block is PoscarBlock.NUM_ATOMS)
        assert diagnostics[0].span == num_atoms.line.span

    def test_no_species_line(self):
        source = "c\n1.0\n1 0 0\n0 1 0\n0 0 1\n2\nDirect\n0 0 0\n0.5 0.5 0.5"
        assert lint_poscar(parse_poscar(source)) == []


class TestKeywords:
    def test_selective_dynamics(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.SEL_DYNAMICS, "Selective dynamics") == []
        assert _lint(poscar_line, PoscarBlock.SEL_DYNAMICS, "Sel") == []

    def test_selective_misspelled(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.SEL_DYNAMICS, "Selektiv")
        assert [d.severity for d in diagnostics] == [Severity.WARNING]
        assert "'selective dynamics'" in diagnostics[0].message

    def test_wrong_first_letter(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.LATT_VELOCITIES_START, "Velocities")
        assert _messages(diagnostics) == [
            "First non-space character on line must be 'l' or 'L'."
        ]

    def test_initialization_state(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.LATT_VELOCITIES_STATE, "1") == []
        assert _messages(_lint(poscar_line, PoscarBlock.LATT_VELOCITIES_STATE, "x")) == [
            "Initialization state needs to be an integer."
        ]


class TestCoordinateMode:
    def test_canonical_spellings(self, poscar_line):
        for text in ("Direct", "d", "Cartesian", "cart", "Kartesian", "K"):
            assert _lint(poscar_line, PoscarBlock.POSITION_MODE, text) == [], text

    def test_empty_position_mode_hint(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITION_MODE, "")
        assert [d.severity for d in diagnostics] == [Severity.HINT]
        assert "'direct'" in diagnostics[0].message

    def test_empty_velocity_mode_is_silent(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.VELOCITY_MODE, "") == []

    def test_other_spelling_hint(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITION_MODE, "Fractional")
        assert [d.severity for d in diagnostics] == [Severity.HINT]

    def test_cartesian_misspelled(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITION_MODE, "Cartesain")
        assert "'cartesian'" in diagnostics[0].message


class TestSelectiveFlags:
    def test_valid(self, poscar_line):
        assert _lint(poscar_line, PoscarBlock.POSITIONS_SEL_DYN, "0 0 0 T T F") == []

    def test_bad_flag(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITIONS_SEL_DYN, "0 0 0 T x F")
        assert _messages(diagnostics) == ["Selective dynamics flag must be either 'T' or 'F'."]
        assert diagnostics[0].span.start.column == 9

    def test_no_flags_points_at_end_of_line(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITIONS_SEL_DYN, "0 0 0")
        assert _messages(diagnostics) == ["There must be 3 selective-dynamics flags. Too few given."]
        assert diagnostics[0].span.start == diagnostics[0].span.end
        assert diagnostics[0].span.start.column == 6

    def test_some_flags(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITIONS_SEL_DYN, "0 0 0 T")
        assert _messages(diagnostics) == ["There must be 3 selective-dynamics flags. Too few given."]
        assert diagnostics[0].span.start.column == 7

    def test_short_vector_also_lacks_flags(self, poscar_line):
        line = poscar_line(PoscarBlock.POSITIONS_SEL_DYN, "0 0")
        diagnostics = lint_poscar_line(line)
        assert _messages(diagnostics) == [
            "Position vector must consist of 3 numbers. Too few given.",
            "There must be 3 selective-dynamics flags. Too few given.",
        ]
        assert diagnostics[1].span.start == line.line.span.end

    def test_empty_line_also_lacks_flags(self, poscar_line):
        diagnostics = _lint(poscar_line, PoscarBlock.POSITIONS_SEL_DYN, "")
        assert _messages(diagnostics) == [
            "Line must not be empty.",
            "There must be 3 selective-dynamics flags. Too few given.",
        ]


class TestKpoints:
    def _lint(self, source):
        return lint_kpoints(parse_kpoints(source))

    def test_valid_files(self):
        for source in (
            "c\n2\nReciprocal\n0 0 0 1\n0.5 0 0 1",
            "c\n0\nGamma\n4 4 4\n0 0 0",
            "c\n0\nReciprocal\n0.25 0 0\n0 0.25 0\n0 0 0.25\n0 0 0",
            "c\n10\nLine-mode\nReciprocal\n0 0 0 ! G\n0.5 0 0.5 ! X\n\n0.5 0 0.5\n0 0 0\n",
            "c\n0\nAuto\n20",
        ):
            assert self._lint(source) == [], source

    def test_negative_count(self):
        assert _messages(self._lint("c\n-1\nGamma")) == [
            "Number of k-points must be a non-negative integer."
        ]

    def test_mode_hints(self):
        assert _messages(self._lint("c\n0\nGx\n4 4 4")) == [
            "Consider specifying 'Gamma' to avoid potential mistakes."
        ]
        assert _messages(self._lint("c\n0\nMx\n4 4 4")) == [
            "Consider specifying 'Monkhorst-Pack' to avoid potential mistakes."
        ]
        assert _messages(self._lint("c\n5\nLines\nRec\n0 0 0")) == [
            "Consider specifying 'Line-mode' to avoid potential mistakes."
        ]
        assert _messages(self._lint("c\n0\nAutomatisch\n20")) == [
            "Consider specifying 'Automatic' to avoid potential mistakes."
        ]
        assert _messages(self._lint("c\n1\nFractional\n0 0 0 1")) == [
            "Consider specifying 'reciprocal' to avoid potential mistakes."
        ]

    def test_explicit_kpoint(self):
        assert _messages(self._lint("c\n1\nRec\n0 0 0")) == [
            "Each k-point must consist of 3 coordinates and a weight. Too few given."
        ]
        assert _messages(self._lint("c\n1\nRec\n0 0 0 w")) == ["K-point weight must be a number."]
        assert _messages(self._lint("c\n1\nRec\nx 0 0 1")) == [
            "K-point coordinate must be a number."
        ]

    def test_subdivisions(self):
        assert _messages(self._lint("c\n0\nGamma\n4 0 4")) == [
            "Subdivision must be a positive integer."
        ]
        assert _messages(self._lint("c\n0\nGamma\n4 4")) == [
            "There must be 3 subdivisions. Too few given."
        ]

    def test_length(self):
        for text in ("0", "-5", "abc"):
            assert _messages(self._lint(f"c\n0\nAuto\n{text}")) == [
                "Length must be a positive number."
            ], text

    def test_line_mode_points(self):
        assert _messages(self._lint("c\n5\nLine\nRec\n0 0")) == [
            "K-point must consist of 3 numbers. Too few given."
        ]

    def test_empty_coordinate_line(self):
        diagnostics = self._lint("c\n5\nLine\n\n0 0 0")
        assert _messages(diagnostics) == ["Line must not be empty."]
        assert diagnostics[0].span.start.line == 4

    def test_shift_vector(self):
        assert _messages(self._lint("c\n0\nGamma\n4 4 4\n0.5 x 0.5")) == [
            "Shift vector component must be a number."
        ]

    def test_mode_line_of_stopped_file(self):
        diagnostics = self._lint("c\n-3\n")
        assert _messages(diagnostics) == [
            "Number of k-points must be a non-negative integer.",
            "Line must not be empty.",
        ]

    def test_line_block_kinds_in_order(self):
        lines = parse_kpoints("c\n0\nGamma\n4 4 4")
        assert lines[-1].block is KpointsBlock.SUBDIVISIONS
