"""Unit tests for chemical formula evaluation."""

import logging

import pytest
from pyteomics import mass

from alphapsm.formula import (
    ChemicalFormulaEvaluator,
    EmpiricalFormula,
    FormulaParseError,
    compute_formula_mass,
    element_mass,
    parse_formula,
)


class TestParseFormula:
    """Test parsing of formula notations into element counts."""

    def test_compact_formula(self):
        """Test a compact formula with implicit counts of 1."""
        composition = parse_formula("C2H3N4OS")
        assert composition == EmpiricalFormula({"C": 2, "H": 3, "N": 4, "O": 1, "S": 1})

    def test_signed_counts_are_summed(self):
        """Test that repeated elements with signed counts are combined."""
        composition = parse_formula("C2H3N-2OS3N+3S-2")
        assert composition.get_element_count("N") == 1
        assert composition.get_element_count("S") == 1
        assert composition.get_element_count("C") == 2

    def test_parenthesised_counts(self):
        """Test UniMod / MaxQuant notation with spaces between tokens."""
        composition = parse_formula("H(-1) N(-1) O")
        assert composition == EmpiricalFormula({"H": -1, "N": -1, "O": 1})

    def test_isotope_prefixes(self):
        """Test nominal isotope prefixes and explicit isotope masses."""
        composition = parse_formula("13C(6) 15N(2)")
        assert composition.get_element_count("C[13]") == 6
        assert composition.get_element_count("N[15]") == 2

        composition = parse_formula("^13.003355C2")
        assert composition.get_element_count("^13.003355C") == 2

    def test_heavy_isotope_shorthand(self):
        """Test MaxQuant Cx / Nx / Hx shorthand."""
        composition = parse_formula("Cx(6) Nx(2) Hx")
        assert composition.get_element_count("C[13]") == 6
        assert composition.get_element_count("N[15]") == 2
        assert composition.get_element_count("H[2]") == 1

    def test_empty_formula(self):
        """Test that empty formulas are rejected."""
        with pytest.raises(FormulaParseError):
            parse_formula("")
        with pytest.raises(FormulaParseError):
            parse_formula("   ")

    def test_unknown_element(self):
        """Test that an unknown element symbol is rejected."""
        with pytest.raises(FormulaParseError, match="Unknown element"):
            parse_formula("C2Qq")

    def test_unknown_isotope(self):
        """Test that an isotope without a known mass is rejected."""
        with pytest.raises(FormulaParseError, match="Unknown isotope"):
            parse_formula("99C")

    def test_sign_without_number(self):
        """Test that a trailing sign without a count is rejected."""
        with pytest.raises(FormulaParseError, match="Number not found"):
            parse_formula("C-")

    def test_unrecognized_token(self):
        """Test that punctuation outside the notation is rejected."""
        with pytest.raises(FormulaParseError, match="Unrecognized token"):
            parse_formula("C2H3!")

    def test_error_is_value_error_with_title(self):
        """Test that errors name the modification being evaluated."""
        with pytest.raises(ValueError) as excinfo:
            parse_formula("Qq", title="MyMod")
        assert "MyMod" in str(excinfo.value)
        assert excinfo.value.title == "MyMod"


class TestComputeMass:
    """Test monoisotopic mass evaluation."""

    def test_reference_formula(self, evaluator):
        """Test the C2H3N4OS reference mass."""
        assert abs(evaluator.compute_mass("C2H3N4OS") - 131.0027) < 0.0001

    def test_negative_counts(self, evaluator):
        """Test a formula mixing positive and negative counts."""
        assert abs(evaluator.compute_mass("C2H3N-2OS3N+3S-2") - 88.99353) < 0.0001

    def test_carbamidomethyl(self, evaluator):
        """Test the carbamidomethyl composition."""
        assert abs(evaluator.compute_mass("C2H3N1O1") - 57.021464) < 0.0001
        assert abs(evaluator.compute_mass("H(3) C(2) N O") - 57.021464) < 0.0001

    def test_matches_pyteomics_formula_mass(self, evaluator):
        """Test compact formulas agree with pyteomics.mass."""
        for formula in ("C2H3N1O1", "HO3P", "C6H10O5"):
            assert abs(evaluator.compute_mass(formula) - mass.calculate_mass(formula=formula)) < 1e-9

    def test_pure_loss(self, evaluator):
        """Test that a formula of only negative counts is a loss."""
        assert abs(evaluator.compute_mass("H-2O-1") - (-18.010565)) < 0.0001
        assert abs(evaluator.compute_mass("H(-3) N(-1)") - (-17.026549)) < 0.0001

    def test_isotope_label(self, evaluator):
        """Test a heavy label written with shorthand and negative counts."""
        mass = evaluator.compute_mass("Cx(6) Nx(2) C(-6) N(-2)")
        assert abs(mass - 8.014199) < 0.0001

    def test_explicit_isotope_mass(self, evaluator):
        """Test ^mass notation uses the given mass."""
        assert abs(evaluator.compute_mass("^13.003355C") - 13.003355) < 1e-9

    def test_deuterium(self, evaluator):
        """Test that D is evaluated as 2H."""
        assert abs(evaluator.compute_mass("D") - mass.nist_mass["H"][2][0]) < 1e-9

    def test_zero_counts_rejected(self, evaluator):
        """Test that a formula whose counts cancel out is rejected."""
        with pytest.raises(FormulaParseError):
            evaluator.compute_mass("C0")

    def test_try_compute_mass(self, evaluator, caplog):
        """Test that try_compute_mass logs and returns None on errors."""
        with caplog.at_level(logging.WARNING):
            assert evaluator.try_compute_mass("Qq") is None
        assert "Skipping formula" in caplog.text
        assert abs(evaluator.try_compute_mass("O") - 15.9949146) < 1e-6

    def test_module_shortcut(self):
        """Test compute_formula_mass matches the evaluator."""
        assert compute_formula_mass("HO3P") == ChemicalFormulaEvaluator().compute_mass("HO3P")
        assert abs(compute_formula_mass("HO3P") - 79.966331) < 0.0001


class TestSequenceModifierMass:
    """Test sequence-based modifier masses."""

    def test_glygly(self, evaluator):
        """Test GG is the sum of two glycine residues."""
        assert abs(evaluator.compute_sequence_modifier_mass("GG") - 114.042927) < 0.0001

    def test_lowercase(self, evaluator):
        """Test that lowercase residues are accepted."""
        assert evaluator.compute_sequence_modifier_mass("gg") == evaluator.compute_sequence_modifier_mass("GG")

    def test_invalid_residue(self, evaluator):
        """Test that non-residue characters are rejected."""
        with pytest.raises(FormulaParseError):
            evaluator.compute_sequence_modifier_mass("G1G")


class TestElementMass:
    """Test element and isotope mass lookup."""

    def test_element_and_isotope(self):
        """Test plain symbols and isotope keys."""
        assert element_mass("C") == 12.0
        assert element_mass("C[13]") == mass.nist_mass["C"][13][0]
        assert abs(element_mass("^13.5C") - 13.5) < 1e-12

    def test_unknown_key(self):
        """Test that unknown keys raise."""
        with pytest.raises(FormulaParseError):
            element_mass("Zz")
