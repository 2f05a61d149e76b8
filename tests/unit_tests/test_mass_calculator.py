"""Unit tests for peptide mass calculation and unit conversion."""

import numpy as np
import pytest
from pyteomics.mass import nist_mass

from alphapsm.constants import (
    AA_MONO_MASSES,
    DEFAULT_C_TERMINUS_MASS,
    DEFAULT_N_TERMINUS_MASS,
    PROTON_MASS,
    validate_constants,
)
from alphapsm.formula import EmpiricalFormula, FormulaParseError
from alphapsm.mass_calculator import (
    InvalidResidueError,
    PeptideMassCalculator,
    PeptideSequenceModInfo,
    convolute_mass,
    encode_peptide_to_ord,
    mass_to_ppm,
    mass_to_ppm_batch,
    ppm_to_mass,
    sum_residue_masses,
)

H2O_MASS = DEFAULT_N_TERMINUS_MASS + DEFAULT_C_TERMINUS_MASS


class TestUnitConversion:
    """Test ppm and charge state conversions."""

    def test_mass_to_ppm(self):
        """Test 0.005 Da at 1000 Da."""
        assert abs(mass_to_ppm(0.005, 1000.0) - 5.0) < 1e-9

    def test_ppm_to_mass(self):
        """Test 5 ppm at 1000 Da."""
        assert abs(ppm_to_mass(5.0, 1000.0) - 0.005) < 1e-12

    def test_ppm_round_trip(self):
        """Test that ppm_to_mass inverts mass_to_ppm."""
        deltas = np.random.uniform(-0.5, 0.5, 50)
        references = np.random.uniform(300.0, 6000.0, 50)
        for delta, reference in zip(deltas, references):
            assert abs(ppm_to_mass(mass_to_ppm(delta, reference), reference) - delta) < 1e-9

    def test_mass_to_ppm_batch(self):
        """Test the vectorised conversion matches the scalar one."""
        deltas = np.array([0.005, -0.01, 0.0])
        references = np.array([1000.0, 2000.0, 500.0])
        result = mass_to_ppm_batch(deltas, references)
        expected = [mass_to_ppm(d, r) for d, r in zip(deltas, references)]
        np.testing.assert_allclose(result, expected)

    def test_mh_to_neutral(self):
        """Test (M+H)+ 1000 to neutral mass."""
        assert abs(convolute_mass(1000.0, 1, 0) - 998.99272) < 0.00001

    def test_doubly_charged_to_mh(self):
        """Test a 2+ m/z converted to (M+H)+."""
        mz = 500.0
        expected = mz * 2 - PROTON_MASS
        assert abs(convolute_mass(mz, 2, 1) - expected) < 1e-9

    def test_neutral_to_charge_and_back(self):
        """Test that conversions between charge states invert each other."""
        for charge in range(1, 6):
            mz = convolute_mass(1500.0, 0, charge)
            assert abs(convolute_mass(mz, charge, 0) - 1500.0) < 1e-9

    def test_same_charge_unchanged(self):
        """Test that converting to the same charge returns the input."""
        assert convolute_mass(750.25, 2, 2) == 750.25

    def test_negative_charge(self):
        """Test that negative charges give 0."""
        assert convolute_mass(500.0, -1, 1) == 0.0
        assert convolute_mass(500.0, 1, -2) == 0.0

    def test_zero_charge_carrier_means_proton(self):
        """Test that a zero charge carrier mass falls back to the proton."""
        assert convolute_mass(1000.0, 1, 0, 0.0) == convolute_mass(1000.0, 1, 0)

    def test_custom_charge_carrier(self):
        """Test a sodium adduct as charge carrier."""
        sodium = 22.989218
        assert abs(convolute_mass(1000.0, 0, 1, sodium) - (1000.0 + sodium)) < 1e-9


class TestNumbaKernels:
    """Test the ord()-based residue mass kernel."""

    def test_encode_peptide(self):
        """Test ord() encoding."""
        encoded = encode_peptide_to_ord("PEP")
        assert encoded.dtype == np.uint8
        assert list(encoded) == [ord('P'), ord('E'), ord('P')]

    def test_encode_rejects_wide_characters(self):
        """Test that characters outside 8 bits are rejected."""
        with pytest.raises(InvalidResidueError):
            encode_peptide_to_ord("PEPα")

    def test_sum_residue_masses(self, calculator):
        """Test the kernel sum and the invalid index."""
        mass, invalid_index = sum_residue_masses(encode_peptide_to_ord("GG"), calculator.residue_masses)
        assert invalid_index == -1
        assert abs(mass - 2 * AA_MONO_MASSES['G']) < 1e-9

        mass, invalid_index = sum_residue_masses(encode_peptide_to_ord("G1G"), calculator.residue_masses)
        assert invalid_index == 1


class TestComputeSequenceMass:
    """Test peptide monoisotopic masses."""

    def test_reference_peptide_with_flanks(self, calculator, known_peptide_masses):
        """Test A.LCDE.F, where the flanks are ignored."""
        mass = calculator.compute_sequence_mass("A.LCDE.F")
        assert abs(mass - known_peptide_masses["LCDE"]) < 0.001

    def test_known_masses(self, calculator, known_peptide_masses):
        """Test known peptide masses."""
        for peptide, expected in known_peptide_masses.items():
            assert abs(calculator.compute_sequence_mass(peptide) - expected) < 0.001

    def test_empty_sequence(self, calculator):
        """Test that an empty sequence has mass 0."""
        assert calculator.compute_sequence_mass("") == 0.0

    def test_invalid_residue(self, calculator):
        """Test that lowercase letters and symbols are rejected."""
        with pytest.raises(InvalidResidueError, match="Unknown symbol"):
            calculator.compute_sequence_mass("PEPtIDE")
        with pytest.raises(InvalidResidueError) as excinfo:
            calculator.compute_sequence_mass("PEP*TIDE")
        assert excinfo.value.residue == '*'

    def test_ambiguous_residues(self, calculator):
        """Test B, Z and X masses; J has no mass."""
        assert calculator.get_amino_acid_mass('B') == AA_MONO_MASSES['N']
        assert calculator.get_amino_acid_mass('Z') == AA_MONO_MASSES['Q']
        assert calculator.get_amino_acid_mass('X') == AA_MONO_MASSES['L']
        assert calculator.get_amino_acid_mass('J') == 0.0

    def test_positional_modifications(self, calculator, known_peptide_masses):
        """Test that positional mods add their mass once."""
        mods = [PeptideSequenceModInfo(1, 15.994915), PeptideSequenceModInfo(2, 79.966331)]
        mass = calculator.compute_sequence_mass("MPEPTIDE", mods)
        expected = known_peptide_masses["MPEPTIDE"] + 15.994915 + 79.966331
        assert abs(mass - expected) < 0.001

    def test_isotopic_modification(self, calculator):
        """Test that an isotopic mod adds its mass per atom of the element."""
        n15_shift = nist_mass["N"][15][0] - nist_mass["N"][0][0]
        base = calculator.compute_sequence_mass("GG")
        mass = calculator.compute_sequence_mass("GG", [PeptideSequenceModInfo(0, n15_shift, "N")])
        assert abs(mass - (base + 2 * n15_shift)) < 1e-6

    def test_isotopic_modification_element_absent(self, calculator):
        """Test that an isotopic mod on an absent element changes nothing."""
        base = calculator.compute_sequence_mass("GG")
        mass = calculator.compute_sequence_mass("GG", [PeptideSequenceModInfo(0, 1.0, "S")])
        assert mass == base

    def test_isotopic_modification_unknown_element(self, calculator):
        """Test that an unknown affected atom is rejected."""
        with pytest.raises(FormulaParseError, match="Unknown affected atom"):
            calculator.compute_sequence_mass("GG", [PeptideSequenceModInfo(0, 1.0, "Q")])

    def test_numeric_mods(self, calculator):
        """Test numeric mods written inside the sequence."""
        mass = calculator.compute_sequence_mass_numeric_mods("K.Q-17.0265QIEESTSDYDKEK.L")
        assert abs(mass - 1681.7319) < 0.0001

    def test_keep_flanks_when_disabled(self):
        """Test that flanks are treated as residues when stripping is disabled."""
        calculator = PeptideMassCalculator(remove_prefix_and_suffix_if_present=False)
        with pytest.raises(InvalidResidueError):
            calculator.compute_sequence_mass("A.LCDE.F")


class TestResidueTables:
    """Test customising residue and terminus masses."""

    def test_set_and_reset_residue_mass(self, calculator):
        """Test overriding and restoring a residue mass."""
        assert calculator.set_amino_acid_mass('C', 160.030649)
        assert abs(calculator.compute_sequence_mass("C") - (160.030649 + H2O_MASS)) < 1e-6

        calculator.reset_amino_acid_to_default('C')
        assert calculator.get_amino_acid_mass('C') == AA_MONO_MASSES['C']

    def test_set_rejects_non_residue(self, calculator):
        """Test that only A-Z can be overridden."""
        assert not calculator.set_amino_acid_mass('*', 10.0)
        assert not calculator.set_amino_acid_atom_counts('1', EmpiricalFormula({"C": 1}))
        assert calculator.get_amino_acid_mass('*') == 0.0

    def test_instances_are_independent(self):
        """Test that overriding one calculator leaves another untouched."""
        first = PeptideMassCalculator()
        second = PeptideMassCalculator()
        first.set_amino_acid_mass('K', 136.109162)
        assert second.get_amino_acid_mass('K') == AA_MONO_MASSES['K']

    def test_terminus_masses(self, calculator):
        """Test that terminus masses contribute once per peptide."""
        base = calculator.compute_sequence_mass("PEPTIDE")
        calculator.peptide_n_terminus_mass = DEFAULT_N_TERMINUS_MASS + 42.010565
        assert abs(calculator.compute_sequence_mass("PEPTIDE") - (base + 42.010565)) < 1e-6

        calculator.reset_terminus_masses()
        assert calculator.compute_sequence_mass("PEPTIDE") == base

    def test_residue_masses_match_compositions(self):
        """Test tabulated residue masses agree with their pyteomics compositions."""
        assert validate_constants()

    def test_residue_formula(self, calculator):
        """Test residue element counts, including selenium for U."""
        assert calculator.get_amino_acid_empirical_formula('G') == EmpiricalFormula(
            {"C": 2, "H": 3, "N": 1, "O": 1})
        assert calculator.get_amino_acid_empirical_formula('U').get_element_count("Se") == 1

    def test_sequence_formula(self, calculator):
        """Test summed element counts of a sequence."""
        formula = calculator.sequence_empirical_formula("GK")
        assert formula.get_element_count("N") == 3
        with pytest.raises(InvalidResidueError):
            calculator.sequence_empirical_formula("G*")

    def test_charge_helpers(self, calculator):
        """Test the calculator's charge conversion shortcuts."""
        assert abs(calculator.mh_to_monoisotopic_mass(1000.0) - 998.99272) < 0.00001
        mz = calculator.monoisotopic_mass_to_mz(998.992724, 2)
        assert abs(mz - (998.992724 + 2 * PROTON_MASS) / 2) < 1e-9
