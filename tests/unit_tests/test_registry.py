"""Unit tests for the modification registry."""

import numpy as np
import pytest

from alphapsm.modifications import ModificationDefinition, ModificationType, ResidueTerminusState
from alphapsm.registry import (
    ModificationRegistry,
    generate_generic_mod_mass_name,
    mass_within_precision,
)


class TestMassCorrectionTags:
    """Test naming of modification masses."""

    def test_known_tags(self, registry):
        """Test lookups of default tags."""
        assert registry.lookup_mass_correction_tag_by_mass(15.9949) == "Plus1Oxy"
        assert registry.lookup_mass_correction_tag_by_mass(79.9663) == "Phosph"
        assert registry.lookup_mass_correction_tag_by_mass(57.0215) == "IodoAcet"

    def test_generic_name_stored(self, registry):
        """Test that unknown masses get a generic name that is then reused."""
        name = registry.lookup_mass_correction_tag_by_mass(123.4567)
        assert name == "+123.457"
        assert registry.mass_correction_tags[name] == 123.4567
        assert registry.lookup_mass_correction_tag_by_mass(123.4567) == name

    def test_generic_name_not_stored(self, registry):
        """Test add_to_tags_if_unknown=False leaves the tags unchanged."""
        tag_count = len(registry.mass_correction_tags)
        registry.lookup_mass_correction_tag_by_mass(321.1234, add_to_tags_if_unknown=False)
        assert len(registry.mass_correction_tags) == tag_count

    def test_loose_precision(self, registry):
        """Test that a coarser precision finds a tag."""
        assert registry.lookup_mass_correction_tag_by_mass(15.96, 3, True, 1) == "Plus1Oxy"

    def test_integer_tags(self, registry):
        """Test integer names at 0 digits of precision."""
        assert registry.lookup_mass_correction_tag_by_mass(-11.0, 3, False, 0) == "AsnToCys"

    def test_generic_names(self):
        """Test the eight-character generic names."""
        assert generate_generic_mod_mass_name(15.9949) == "+15.9949"
        assert generate_generic_mod_mass_name(-18.0106) == "-18.0106"
        assert generate_generic_mod_mass_name(0.984) == "+0.98400"
        assert generate_generic_mod_mass_name(0) == "+0.00000"
        assert generate_generic_mod_mass_name(1e9) == "+9999999"
        assert len(generate_generic_mod_mass_name(1234.5678)) == 8

    def test_read_tags_file(self, registry, tmp_path):
        """Test that a tags file replaces the defaults."""
        file_path = tmp_path / "Mass_Correction_Tags.txt"
        file_path.write_text("Tag\tMass\nMyTag\t100.5\nOther\t-5.25\n")
        registry.read_mass_correction_tags_file(file_path)
        assert registry.mass_correction_tags == {"MyTag": 100.5, "Other": -5.25}

    def test_read_tags_file_missing(self, registry, tmp_path):
        """Test a missing file raises and restores the defaults."""
        with pytest.raises(FileNotFoundError):
            registry.read_mass_correction_tags_file(tmp_path / "missing.txt")
        assert "Plus1Oxy" in registry.mass_correction_tags

    def test_lookup_by_name(self, registry):
        """Test tag names and common names, ignoring case."""
        assert registry.lookup_modification_mass_by_name("plus1oxy") == 15.994915
        assert registry.lookup_modification_mass_by_name("Carbamidomethyl") == 57.021464
        assert registry.lookup_modification_mass_by_name("NotAMod") is None


class TestLookupByMass:
    """Test resolving modification masses to definitions."""

    def test_precision_predicate(self):
        """Test the 10^-digits threshold."""
        assert mass_within_precision(0.0009, 3)
        assert not mass_within_precision(0.0011, 3)
        assert mass_within_precision(-0.0009, 3)

    def test_unknown_mass_registered(self, registry):
        """Test that an unknown mass is registered with the next symbol."""
        definition, found = registry.lookup_modification_definition_by_mass(
            79.9663, "S", ResidueTerminusState.NONE)
        assert not found
        assert definition.modification_type == ModificationType.UNKNOWN
        assert definition.modification_symbol == '*'
        assert definition.mass_correction_tag == "Phosph"
        assert definition.target_residues == "S"
        assert definition.unknown_mod_auto_defined
        assert len(registry) == 1

    def test_same_mass_same_instance(self, registry):
        """Test masses within precision resolve to the same instance."""
        first, _ = registry.lookup_modification_definition_by_mass(79.9663, "S")
        second, found = registry.lookup_modification_definition_by_mass(79.9665, "S")
        assert found
        assert second is first
        assert len(registry) == 1

    def test_residue_appended_to_dynamic(self, registry):
        """Test that a known mass on a new residue extends the target residues."""
        first, _ = registry.lookup_modification_definition_by_mass(79.9663, "S")
        second, found = registry.lookup_modification_definition_by_mass(79.9663, "T")
        assert found
        assert second is first
        assert first.target_residues == "ST"

    def test_residue_specific_match_preferred(self, registry):
        """Test that a mod on the residue wins over a mod without residues."""
        anywhere = ModificationDefinition('#', 15.9949, "", ModificationType.DYNAMIC, "Plus1Oxy")
        on_m = ModificationDefinition('*', 15.9949, "M", ModificationType.DYNAMIC, "Plus1Oxy")
        registry.modifications.extend([anywhere, on_m])
        definition, found = registry.lookup_modification_definition_by_mass(15.9949, "M")
        assert found
        assert definition is on_m

        definition, _ = registry.lookup_modification_definition_by_mass(15.9949, "W")
        assert definition is anywhere

    def test_closest_mass_wins(self, registry):
        """Test that the closest mass within precision is chosen."""
        near = ModificationDefinition('*', 10.0004, "K", ModificationType.DYNAMIC)
        nearer = ModificationDefinition('#', 10.0001, "K", ModificationType.DYNAMIC)
        registry.modifications.extend([near, nearer])
        definition, _ = registry.lookup_modification_definition_by_mass(10.0, "K")
        assert definition is nearer

    def test_refinement_mods(self, registry):
        """Test NH3 loss on Q is found without a declaration."""
        definition, found = registry.lookup_modification_definition_by_mass(-17.0265, "Q")
        assert found
        assert definition.mass_correction_tag == "NH3_Loss"
        assert definition.target_residues == "Q"
        assert definition in registry.modifications

    def test_refinement_mods_need_residue(self, registry):
        """Test NH3 loss on another residue is an unknown mod."""
        definition, found = registry.lookup_modification_definition_by_mass(-17.0265, "K")
        assert not found
        assert definition.modification_type == ModificationType.UNKNOWN

    def test_loose_retry(self, registry):
        """Test the retry at the loose precision."""
        on_k = ModificationDefinition('*', 8.0142, "K", ModificationType.DYNAMIC)
        registry.modifications.append(on_k)
        definition, found = registry.lookup_modification_definition_by_mass(
            8.01, "K", ResidueTerminusState.NONE, 3, 1)
        assert found
        assert definition is on_k

    def test_terminus_unknown_mod_targets_terminus(self, registry):
        """Test an unknown mod on a terminal residue targets the terminus symbol."""
        definition, found = registry.lookup_modification_definition_by_mass(
            42.0106, "A", ResidueTerminusState.PROTEIN_N_TERMINUS)
        assert not found
        assert definition.target_residues == '<'
        assert definition.mass_correction_tag == "Acetyl"

        again, found = registry.lookup_modification_definition_by_mass(
            42.0106, "M", ResidueTerminusState.PEPTIDE_N_TERMINUS)
        assert found
        assert again is definition

    def test_not_added_when_disabled(self, registry):
        """Test add_to_modification_list_if_unknown=False."""
        definition, found = registry.lookup_modification_definition_by_mass(
            55.5555, "K", add_to_modification_list_if_unknown=False)
        assert not found
        assert len(registry) == 0
        assert definition.modification_symbol == '_'

    def test_symbols_exhausted(self, registry):
        """Test the last-resort symbol once the default symbols run out."""
        for index in range(len(registry.available_modification_symbols)):
            registry.lookup_modification_definition_by_mass(100.0 + index, "K")
        definition, _ = registry.lookup_modification_definition_by_mass(200.0, "K")
        assert registry.available_modification_symbols == ""
        assert definition.modification_symbol == '_'

    def test_identity_for_random_masses(self, registry):
        """Test that repeated lookups of the same masses return the same instances."""
        masses = np.round(np.random.uniform(100.0, 400.0, 10), 4)
        first = [registry.lookup_modification_definition_by_mass(m, "K").definition for m in masses]
        second = [registry.lookup_modification_definition_by_mass(m, "K").definition for m in masses]
        for a, b in zip(first, second):
            assert a is b


class TestLookupByMassAndType:
    """Test type-restricted lookups used for declared mods."""

    def test_static_mod_has_no_symbol(self, registry):
        """Test static mods are registered without a display symbol."""
        definition, found = registry.lookup_modification_definition_by_mass_and_type(
            57.021464, ModificationType.STATIC, "C")
        assert not found
        assert definition.modification_type == ModificationType.STATIC
        assert definition.modification_symbol == '-'

    def test_dynamic_mod_extends_residues(self, registry):
        """Test a dynamic declaration on several residues reuses one instance."""
        s_mod, _ = registry.lookup_modification_definition_by_mass_and_type(
            79.966331, ModificationType.DYNAMIC, "S")
        t_mod, found = registry.lookup_modification_definition_by_mass_and_type(
            79.966331, ModificationType.DYNAMIC, "T")
        assert found
        assert t_mod is s_mod
        assert s_mod.target_residues == "ST"
        assert s_mod.modification_symbol == '*'


class TestSymbolLookup:
    """Test resolving display symbols."""

    def test_symbol_for_residue(self, registry):
        """Test a dynamic mod is found by symbol and residue."""
        oxidation = ModificationDefinition('*', 15.994915, "M", ModificationType.DYNAMIC, "Plus1Oxy")
        registry.add_modification(oxidation, False)
        definition, found = registry.lookup_dynamic_modification_definition_by_target_info(
            '*', 'M', ResidueTerminusState.NONE)
        assert found
        assert definition is oxidation

    def test_symbol_on_other_residue(self, registry):
        """Test that a symbol is still found for a residue it does not list."""
        oxidation = ModificationDefinition('*', 15.994915, "M", ModificationType.DYNAMIC, "Plus1Oxy")
        registry.add_modification(oxidation, False)
        definition, found = registry.lookup_dynamic_modification_definition_by_target_info(
            '*', 'W', ResidueTerminusState.NONE)
        assert found
        assert definition is oxidation

    def test_unknown_symbol(self, registry):
        """Test an unregistered symbol gives a mass-0 definition."""
        definition, found = registry.lookup_dynamic_modification_definition_by_target_info(
            '#', 'M', ResidueTerminusState.NONE)
        assert not found
        assert definition.modification_mass == 0.0
        assert len(registry) == 0


class TestAddModification:
    """Test adding and merging definitions."""

    def test_equivalent_definitions_merge(self, registry):
        """Test that an equivalent dynamic mod extends the existing one."""
        first = registry.add_modification(
            ModificationDefinition('*', 79.966331, "S", ModificationType.DYNAMIC, "Phosph"), False)
        second = registry.add_modification(
            ModificationDefinition('#', 79.966331, "TY", ModificationType.DYNAMIC, "Phosph"), False)
        assert second is first
        assert first.target_residues == "STY"
        assert len(registry) == 1

    def test_symbol_considered(self):
        """Test merging restricted to identical symbols."""
        registry = ModificationRegistry(consider_mod_symbol_when_finding_identical_mods=True)
        registry.add_modification(
            ModificationDefinition('*', 79.966331, "S", ModificationType.DYNAMIC, "Phosph"), False)
        registry.add_modification(
            ModificationDefinition('#', 79.966331, "T", ModificationType.DYNAMIC, "Phosph"), False)
        assert len(registry) == 2

    def test_next_symbol_assigned(self, registry):
        """Test the next free symbol is used when requested."""
        definition = registry.add_modification(
            ModificationDefinition('-', 15.994915, "M", ModificationType.DYNAMIC, "Plus1Oxy"), True)
        assert definition.modification_symbol == '*'
        assert not registry.available_modification_symbols.startswith('*')

    def test_verify_modification_present(self, registry):
        """Test verify adds a missing mod only once."""
        assert registry.verify_modification_present(15.994915, "M", ModificationType.DYNAMIC)
        assert registry.verify_modification_present(15.9949, "M", ModificationType.DYNAMIC)
        assert len(registry) == 1

    def test_append_standard_refinement_modifications(self, registry):
        """Test NH3 and H2O loss are registered."""
        registry.append_standard_refinement_modifications()
        tags = {definition.mass_correction_tag for definition in registry}
        assert "NH3_Loss" in tags
        assert "MinusH2O" in tags


class TestModificationFiles:
    """Test reading definitions and writing the summary."""

    def test_read_definitions(self, registry, tmp_path):
        """Test the column layout and terminus type inference."""
        file_path = tmp_path / "ModDefs.txt"
        file_path.write_text("\n".join([
            "*\t15.9949\tM\tD\tPlus1Oxy\t-",
            "C\t57.0215\tC\tS\tIodoAcet\t-",
            "-\t42.0106\t[\tS\tAcetyl\t-",
            "-\t0.997035\t-\tI\tIso_N15\tN",
            "-\t1.0\t-\tI\tBadIso\t-",
            "-\t1.0\t-\tI\tBadAtom\tX",
            "not a line",
            "",
        ]))
        count = registry.read_modification_definitions_file(file_path)
        assert count == 4

        types = {definition.mass_correction_tag: definition.modification_type for definition in registry}
        assert types["Plus1Oxy"] == ModificationType.DYNAMIC
        assert types["IodoAcet"] == ModificationType.STATIC
        assert types["Acetyl"] == ModificationType.PROTEIN_TERMINUS_STATIC
        assert types["Iso_N15"] == ModificationType.ISOTOPIC
        assert "BadAtom" not in types
        assert '*' not in registry.available_modification_symbols

    def test_read_definitions_missing(self, registry, tmp_path):
        """Test a missing definitions file raises."""
        with pytest.raises(FileNotFoundError):
            registry.read_modification_definitions_file(tmp_path / "missing.txt")

    def test_mod_summary(self, registry, tmp_path):
        """Test the summary skips unused auto-defined mods."""
        used, _ = registry.lookup_modification_definition_by_mass(15.9949, "M")
        used.occurrence_count = 3
        registry.lookup_modification_definition_by_mass(300.1234, "K")

        file_path = tmp_path / "ModSummary.txt"
        assert registry.write_mod_summary_file(file_path) == 1

        lines = file_path.read_text().splitlines()
        assert lines[0].split('\t')[0] == "Modification_Symbol"
        assert lines[1].split('\t') == ['*', "15.994900", "M", '?', "Plus1Oxy", "3"]


class TestMerge:
    """Test merging registries built on different partitions."""

    def test_merge_sums_counts(self, registry):
        """Test identical definitions are combined."""
        other = ModificationRegistry()
        mine, _ = registry.lookup_modification_definition_by_mass(15.9949, "M")
        theirs, _ = other.lookup_modification_definition_by_mass(15.9949, "M")
        mine.occurrence_count = 2
        theirs.occurrence_count = 5

        mapping = registry.merge(other)
        assert mapping[id(theirs)] is mine
        assert mine.occurrence_count == 7
        assert len(registry) == 1

    def test_merge_renames_symbol_clash(self, registry):
        """Test a copied dynamic mod gets a new symbol when its symbol is taken."""
        other = ModificationRegistry()
        registry.lookup_modification_definition_by_mass(15.9949, "M")
        theirs, _ = other.lookup_modification_definition_by_mass(79.9663, "S")
        assert theirs.modification_symbol == '*'

        mapping = registry.merge(other)
        copied = mapping[id(theirs)]
        assert copied is not theirs
        assert copied.modification_symbol != '*'
        assert len(registry) == 2
