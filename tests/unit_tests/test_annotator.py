"""Unit tests for SearchResultAnnotator."""

import pytest

from alphapsm.adapters.base import ExtractedModification, RawPsmRow
from alphapsm.annotator import INVALID_PEPTIDE_MASS, SearchResultAnnotator
from alphapsm.config import SearchEngineParameters
from alphapsm.constants import C13_MASS_DIFFERENCE, DEFAULT_N_TERMINUS_MASS, PROTON_MASS
from alphapsm.mass_calculator import PeptideMassCalculator, mass_to_ppm
from alphapsm.modifications import ModificationDefinition, ModificationType

OXIDATION_MASS = 15.994915
CARBAMIDOMETHYL_MASS = 57.021464
ACETYL_MASS = 42.010565


@pytest.fixture
def oxidation_registry(registry):
    """Registry with oxidation of M as dynamic mod '*'."""
    registry.add_modification(
        ModificationDefinition('*', OXIDATION_MASS, "M", ModificationType.DYNAMIC, "Plus1Oxy"), False)
    return registry


def reference_mass(sequence):
    return PeptideMassCalculator().compute_sequence_mass(sequence)


class TestConstruction:
    """Test annotator construction."""

    def test_requires_registry_and_calculator(self, registry, calculator):
        """Test missing collaborators are rejected."""
        with pytest.raises(ValueError):
            SearchResultAnnotator(None, calculator)
        with pytest.raises(ValueError):
            SearchResultAnnotator(registry, None)

    def test_from_parameters(self, msgf_param_file):
        """Test building an annotator from an MS-GF+ parameter file."""
        parameters = SearchEngineParameters.from_param_file(msgf_param_file)
        annotator = SearchResultAnnotator.from_parameters(parameters)

        assert annotator.search_engine_name == "MS-GF+"
        assert len(annotator.registry) == 4
        assert annotator.classifier.enzyme_match_spec.is_standard_trypsin

    def test_terminus_mass_updates(self, annotator):
        """Test terminus masses change only when they differ."""
        new_mass = DEFAULT_N_TERMINUS_MASS + ACETYL_MASS
        assert annotator.update_peptide_n_terminus_mass(new_mass)
        assert not annotator.update_peptide_n_terminus_mass(new_mass)
        assert annotator.calculator.peptide_n_terminus_mass == new_mass
        assert not annotator.update_peptide_c_terminus_mass(annotator.calculator.peptide_c_terminus_mass)


class TestAnnotate:
    """Test annotation of single rows."""

    def test_unmodified_peptide(self, annotator, known_peptide_masses):
        """Test mass and cleavage state of a plain tryptic peptide."""
        result = annotator.annotate(RawPsmRow(peptide="K.LCDE.F", scan=10, charge=1))
        assert abs(result.peptide_monoisotopic_mass - known_peptide_masses["LCDE"]) < 0.001
        assert abs(result.peptide_mh - (result.peptide_monoisotopic_mass + PROTON_MASS)) < 1e-6
        assert result.scan == 10
        assert result.peptide_pre_residues == "K"
        assert result.peptide_post_residues == "F"
        assert result.peptide_delta_mass is None
        assert not result.has_errors

    def test_result_ids(self, annotator):
        """Test sequential result ids, continuing after ids set by the engine."""
        first = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A"))
        second = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A"))
        assert (first.result_id, second.result_id) == (1, 2)

        assert annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", result_id=7)).result_id == 7
        assert annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A")).result_id == 8

    def test_row_fields_copied(self, annotator):
        """Test proteins and score text are carried over."""
        row = RawPsmRow(peptide="K.PEPTIDE.A", proteins=["ProtA", "ProtB"],
                        scores={"SpecEValue": "1.2E-10"})
        result = annotator.annotate(row)
        assert result.protein_name == "ProtA"
        assert result.proteins == ["ProtA", "ProtB"]
        assert result.get_score_text("SpecEValue") == "1.2E-10"

    def test_symbol_modification(self, oxidation_registry, calculator):
        """Test a display symbol resolved through the registry."""
        annotator = SearchResultAnnotator(oxidation_registry, calculator)
        result = annotator.annotate(RawPsmRow(peptide="K.M*PEPTIDE.A"))

        assert result.peptide_clean_sequence == "MPEPTIDE"
        assert result.peptide_sequence_with_mods == "M*PEPTIDE"
        assert result.peptide_mod_description == "Plus1Oxy:1"
        expected = reference_mass("MPEPTIDE") + OXIDATION_MASS
        assert abs(result.peptide_monoisotopic_mass - expected) < 0.001

    def test_unknown_symbol_is_an_error(self, annotator):
        """Test an unregistered symbol is reported but the row is kept."""
        result = annotator.annotate(RawPsmRow(peptide="K.M#PEPTIDE.A"))
        assert result.has_errors
        assert "Modification symbol not found" in result.error_messages[0]
        assert abs(result.peptide_monoisotopic_mass - reference_mass("MPEPTIDE")) < 0.001
        assert annotator.rows_with_errors == 1

    def test_mass_modification_registers_unknown(self, annotator):
        """Test a new mass shift is registered with the next free symbol."""
        row = RawPsmRow(peptide="PEPTMIDE", clean_sequence="PEPTMIDE", prefix_residues="K",
                        suffix_residues="A", modifications=[ExtractedModification('M', 5, mass=15.9949)])
        result = annotator.annotate(row)

        definition = result.modifications[0].mod_definition
        assert definition.modification_type == ModificationType.UNKNOWN
        assert definition.modification_symbol == '*'
        assert definition.mass_correction_tag == "Plus1Oxy"
        assert result.peptide_sequence_with_mods == "PEPTM*IDE"
        assert len(annotator.registry) == 1

        # The same mass resolves to the same definition
        second = annotator.annotate(row)
        assert second.modifications[0].mod_definition is definition
        assert definition.occurrence_count == 2

    def test_named_modification(self, annotator):
        """Test a modification given by name."""
        row = RawPsmRow(peptide="MPEPTIDE", clean_sequence="MPEPTIDE", prefix_residues="K",
                        suffix_residues="A", modifications=[ExtractedModification('M', 1, name="Oxidation")])
        result = annotator.annotate(row)
        expected = reference_mass("MPEPTIDE") + OXIDATION_MASS
        assert abs(result.peptide_monoisotopic_mass - expected) < 0.001

    def test_unknown_name_is_an_error(self, annotator):
        """Test a modification name without a known mass."""
        row = RawPsmRow(peptide="MPEPTIDE", clean_sequence="MPEPTIDE", prefix_residues="K",
                        suffix_residues="A", modifications=[ExtractedModification('M', 1, name="Bogus")])
        result = annotator.annotate(row)
        assert result.error_messages == ["Unknown modification 'Bogus' on M1"]
        assert result.modification_count == 0

    def test_position_outside_peptide(self, annotator):
        """Test a mass shift placed past the last residue."""
        row = RawPsmRow(peptide="PEPTIDE", clean_sequence="PEPTIDE", prefix_residues="K",
                        suffix_residues="A", modifications=[ExtractedModification('E', 9, mass=0.984)])
        result = annotator.annotate(row)
        assert result.has_errors
        assert result.modification_count == 0

    def test_invalid_residue(self, annotator):
        """Test a residue without a mass gives the invalid mass and an error."""
        row = RawPsmRow(peptide="PEP1TIDE", clean_sequence="PEP1TIDE", prefix_residues="K",
                        suffix_residues="A", modifications=[], precursor_mass=900.0)
        result = annotator.annotate(row)
        assert result.peptide_monoisotopic_mass == INVALID_PEPTIDE_MASS
        assert result.peptide_mh == INVALID_PEPTIDE_MASS
        assert result.peptide_delta_mass is None
        assert result.has_errors

    def test_static_mods_implied(self, registry, calculator):
        """Test static mods are added when the engine does not report them."""
        registry.lookup_modification_definition_by_mass_and_type(
            CARBAMIDOMETHYL_MASS, ModificationType.STATIC, "C")
        annotator = SearchResultAnnotator(registry, calculator)

        implied = annotator.annotate(RawPsmRow(peptide="K.PECTIDE.A"))
        assert abs(implied.peptide_monoisotopic_mass -
                   (reference_mass("PECTIDE") + CARBAMIDOMETHYL_MASS)) < 0.001
        assert implied.peptide_sequence_with_mods == "PECTIDE"
        assert implied.peptide_mod_description == "IodoAcet:3"

        reported = annotator.annotate(RawPsmRow(peptide="K.PECTIDE.A", static_residue_mods_reported=True))
        assert reported.modification_count == 0

    def test_parameter_file_modifications(self, msgf_param_file):
        """Test dynamic, static and protein N-terminal mods from a parameter file."""
        parameters = SearchEngineParameters.from_param_file(msgf_param_file)
        annotator = SearchResultAnnotator.from_parameters(parameters)

        result = annotator.annotate(RawPsmRow(peptide="K.M*PEPCTIDEK.A"))
        expected = reference_mass("MPEPCTIDEK") + OXIDATION_MASS + CARBAMIDOMETHYL_MASS
        assert abs(result.peptide_monoisotopic_mass - expected) < 0.001
        assert result.peptide_sequence_with_mods == "M*PEPCTIDEK"
        assert result.peptide_mod_description == "Plus1Oxy:1,IodoAcet:5"

        result = annotator.annotate(RawPsmRow(peptide="-.M@*PEPTIDE.A"))
        expected = reference_mass("MPEPTIDE") + OXIDATION_MASS + ACETYL_MASS
        assert abs(result.peptide_monoisotopic_mass - expected) < 0.001
        assert result.peptide_sequence_with_mods == "M@*PEPTIDE"
        assert result.peptide_mod_description == "Acetyl:1,Plus1Oxy:1"
        assert not result.has_errors


class TestDeltaMass:
    """Test the mass error computed from each kind of precursor information."""

    def test_from_precursor_mass(self, annotator):
        """Test a neutral precursor mass."""
        peptide_mass = reference_mass("PEPTIDE")
        result = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", charge=2,
                                              precursor_mass=peptide_mass + 0.004))
        assert abs(result.peptide_delta_mass - 0.004) < 1e-6
        assert abs(result.peptide_delta_mass_ppm - mass_to_ppm(0.004, peptide_mass)) < 1e-3
        assert abs(result.precursor_mz - (peptide_mass + 0.004 + 2 * PROTON_MASS) / 2) < 1e-6
        assert abs(result.parent_ion_mh - (peptide_mass + 0.004 + PROTON_MASS)) < 1e-6

    def test_from_mz_with_isotope_error(self, annotator):
        """Test an m/z where the engine picked the first 13C peak."""
        peptide_mass = reference_mass("PEPTIDE")
        observed = peptide_mass + C13_MASS_DIFFERENCE + 0.002
        result = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", charge=2,
                                              precursor_mz=(observed + 2 * PROTON_MASS) / 2))
        assert abs(result.peptide_delta_mass - (C13_MASS_DIFFERENCE + 0.002)) < 1e-6
        assert abs(result.peptide_delta_mass_ppm - mass_to_ppm(0.002, peptide_mass)) < 1e-3

    def test_from_parent_ion_mh(self, annotator):
        """Test an (M+H)+ precursor."""
        peptide_mass = reference_mass("PEPTIDE")
        result = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", charge=1,
                                              parent_ion_mh=peptide_mass + PROTON_MASS - 0.003))
        assert abs(result.peptide_delta_mass + 0.003) < 1e-6

    def test_from_mass_error_da(self, annotator):
        """Test a mass error reported in Da."""
        result = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", charge=2, mass_error_da=0.01))
        assert abs(result.peptide_delta_mass - 0.01) < 1e-9
        assert result.precursor_mz is not None

    def test_from_mass_error_ppm(self, annotator):
        """Test a mass error reported in ppm."""
        result = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", charge=2, mass_error_ppm=5.0))
        assert abs(result.peptide_delta_mass_ppm - 5.0) < 1e-6

    def test_no_precursor_information(self, annotator):
        """Test that nothing is computed without precursor information."""
        result = annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", charge=2))
        assert result.peptide_delta_mass is None
        assert result.peptide_delta_mass_ppm is None
        assert result.precursor_mz is None

    def test_engine_mass_mismatch(self, annotator):
        """Test a calculated mass far from ours is counted."""
        annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", calculated_mass=reference_mass("PEPTIDE")))
        assert annotator.delta_mass_warning_count == 0
        annotator.annotate(RawPsmRow(peptide="K.PEPTIDE.A", calculated_mass=815.35))
        assert annotator.delta_mass_warning_count == 1


class TestValidation:
    """Test comparison against the engine's theoretical mass."""

    def test_threshold(self, annotator):
        """Test the 0.1 Da threshold and its scaling for large masses."""
        assert annotator.validate_matching_monoisotopic_mass("PEPTIDE", 799.36, 799.40)
        assert not annotator.validate_matching_monoisotopic_mass("PEPTIDE", 799.36, 800.5)
        assert annotator.validate_matching_monoisotopic_mass("BIGPROTEIN", 10000.0, 10000.15)
        assert annotator.delta_mass_warning_count == 1


class TestAnnotateRows:
    """Test batch annotation."""

    def test_all_rows(self, annotator):
        """Test every row is annotated lazily."""
        rows = [RawPsmRow(peptide="K.PEPTIDE.A", scan=scan) for scan in range(5)]
        results = annotator.annotate_rows(rows)
        assert annotator.rows_annotated == 0
        assert [result.scan for result in results] == [0, 1, 2, 3, 4]
        assert annotator.rows_annotated == 5

    def test_should_stop(self, annotator):
        """Test stopping between rows."""
        rows = [RawPsmRow(peptide="K.PEPTIDE.A", scan=scan) for scan in range(5)]
        results = []
        for result in annotator.annotate_rows(rows, should_stop=lambda: len(results) >= 2):
            results.append(result)
        assert len(results) == 2
        assert annotator.rows_annotated == 2

    def test_unknown_affected_atom_recorded_per_row(self, annotator):
        """Test an isotopic mod on an unknown element does not stop the batch."""
        annotator.registry.add_modification(ModificationDefinition(
            '-', 1.0, "", ModificationType.ISOTOPIC, "IsoX", affected_atom="X"), False)
        rows = [RawPsmRow(peptide="K.PEPTIDE.A", scan=1), RawPsmRow(peptide="K.LCDE.A", scan=2)]

        results = list(annotator.annotate_rows(rows))

        assert [result.scan for result in results] == [1, 2]
        for result in results:
            assert result.peptide_monoisotopic_mass == INVALID_PEPTIDE_MASS
            assert result.peptide_delta_mass is None
            assert any("Unknown affected atom 'X'" in message for message in result.error_messages)
        assert annotator.rows_with_errors == 2

    def test_registry_shared_between_annotators(self, registry, calculator):
        """Test that auto-registered mods are visible to later rows and annotators."""
        first = SearchResultAnnotator(registry, calculator)
        row = RawPsmRow(peptide="PEPTMIDE", clean_sequence="PEPTMIDE", prefix_residues="K",
                        suffix_residues="A", modifications=[ExtractedModification('M', 5, mass=15.9949)])
        first.annotate(row)

        second = SearchResultAnnotator(registry, PeptideMassCalculator())
        result = second.annotate(row)
        assert result.modifications[0].mod_definition is registry.get_modification_by_index(0)
