"""Normalized peptide-spectrum match record.

A SearchResult holds the engine-independent fields of one PSM together with
a string-keyed map of engine scores. Scores keep the text written by the
search engine alongside the parsed number, so values are re-emitted without
float round-trip drift.

The cleavage and terminus states are derived from the clean sequence and the
flanking residues; assigning any of the three recomputes both states.

Isotope Selection Correction
----------------------------
Search engines sometimes pick a 13C isotope peak as the precursor. The
observed mass error is shifted by multiples of the 13C-12C spacing until it
lies within +/-0.5 Da, and the precursor mass is corrected by the same number
of spacings before converting the error to ppm.

Examples
--------
>>> round(compute_del_m_corrected_ppm(1.0045, 1001.0045, 1000.0), 3)
1.145
>>> correct_isotope_selection(0.0)
(0.0, 0)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
from numba import njit

from .cleavage import (
    PeptideCleavageClassifier,
    PeptideCleavageState,
    PeptideTerminusState,
    extract_clean_sequence,
    split_prefix_and_suffix,
)
from .constants import (
    C13_MASS_DIFFERENCE,
    C_TERMINAL_PEPTIDE_SYMBOL,
    C_TERMINAL_PROTEIN_SYMBOL,
    MASS_DIGITS_OF_PRECISION,
    NO_AFFECTED_ATOM_SYMBOL,
    N_TERMINAL_PEPTIDE_SYMBOL,
    N_TERMINAL_PROTEIN_SYMBOL,
    TERMINUS_SYMBOL_SEQUEST,
    TERMINUS_SYMBOL_XTANDEM_C_TERMINUS,
    TERMINUS_SYMBOL_XTANDEM_N_TERMINUS,
)
from .mass_calculator import PeptideMassCalculator, PeptideSequenceModInfo, mass_to_ppm
from .modifications import (
    AminoAcidModInfo,
    ModificationDefinition,
    ModificationType,
    ResidueTerminusState,
)
from .registry import ModificationRegistry, parse_float

logger = logging.getLogger(__name__)

# Protein length assumed when the protein sequence is unknown
PSEUDO_PROTEIN_LENGTH = 10000


class InvalidPositionError(ValueError):
    """Raised when a modification position is outside the peptide."""


class ModificationNotFoundError(LookupError):
    """Raised when a dynamic modification symbol is not in the registry."""


# =============================================================================
# Scores
# =============================================================================

@dataclass(frozen=True)
class ScoreValue:
    """Score as written by the search engine plus its numeric value.

    ``value`` is None when the text is not a number (e.g. "N/A").

    >>> ScoreValue.from_text("1.2E-10").value
    1.2e-10
    >>> ScoreValue.from_text("N/A").value is None
    True
    """
    raw_text: str
    value: Optional[float] = None

    @classmethod
    def from_text(cls, text: Optional[str]) -> 'ScoreValue':
        text = "" if text is None else str(text).strip()
        return cls(text, parse_float(text))

    @classmethod
    def from_number(cls, value: float, decimals: Optional[int] = None) -> 'ScoreValue':
        if decimals is None:
            return cls(repr(float(value)), float(value))
        return cls(f"{value:.{decimals}f}", float(value))

    def __str__(self) -> str:
        return self.raw_text


# =============================================================================
# Isotope Selection Correction (Numba Kernels)
# =============================================================================

@njit(cache=True)
def _correct_isotope_selection(del_m: float, isotope_spacing: float):
    correction_count = 0
    if not np.isfinite(del_m):
        return del_m, correction_count

    if del_m >= -0.5:
        while del_m > 0.5:
            del_m -= isotope_spacing
            correction_count += 1
    else:
        while del_m < -0.5:
            del_m += isotope_spacing
            correction_count -= 1
    return del_m, correction_count


@njit(cache=True)
def _del_m_corrected_ppm(del_m: float, precursor_mono_mass: float, peptide_mono_mass: float,
                         adjust_precursor_mass_for_c13: bool, isotope_spacing: float) -> float:
    _, correction_count = _correct_isotope_selection(del_m, isotope_spacing)

    if correction_count != 0:
        if adjust_precursor_mass_for_c13:
            precursor_mono_mass -= correction_count * isotope_spacing
        del_m = precursor_mono_mass - peptide_mono_mass

    return del_m * 1e6 / peptide_mono_mass


@njit(cache=True)
def compute_del_m_corrected_ppm_batch(del_m: np.ndarray, precursor_mono_mass: np.ndarray,
                                      peptide_mono_mass: np.ndarray,
                                      adjust_precursor_mass_for_c13: bool = True) -> np.ndarray:
    """Isotope-corrected mass errors in ppm for many PSMs (Numba-compiled).

    Parameters
    ----------
    del_m : np.ndarray
        Observed minus theoretical mass (Da)
    precursor_mono_mass : np.ndarray
        Observed precursor monoisotopic masses (Da)
    peptide_mono_mass : np.ndarray
        Theoretical peptide monoisotopic masses (Da)
    adjust_precursor_mass_for_c13 : bool
        Shift the precursor mass by the number of isotope corrections

    Returns
    -------
    np.ndarray
        Mass errors in ppm of the peptide mass (NaN where it is not positive)
    """
    n = len(del_m)
    result = np.empty(n, dtype=np.float64)
    for i in range(n):
        if peptide_mono_mass[i] <= 0:
            result[i] = np.nan
            continue
        result[i] = _del_m_corrected_ppm(del_m[i], precursor_mono_mass[i], peptide_mono_mass[i],
                                         adjust_precursor_mass_for_c13, C13_MASS_DIFFERENCE)
    return result


def correct_isotope_selection(del_m: float) -> Tuple[float, int]:
    """Shift a mass error by 13C spacings until it lies within +/-0.5 Da.

    Returns
    -------
    del_m : float
        Shifted mass error
    correction_count : int
        Number of spacings removed (negative when spacings were added)
    """
    shifted, correction_count = _correct_isotope_selection(float(del_m), C13_MASS_DIFFERENCE)
    return float(shifted), int(correction_count)


def compute_del_m_corrected_ppm(del_m: float, precursor_mono_mass: float, peptide_mono_mass: float,
                                adjust_precursor_mass_for_c13: bool = True) -> float:
    """Mass error in ppm after correcting for isotope peak selection.

    Parameters
    ----------
    del_m : float
        Observed minus theoretical mass (Da)
    precursor_mono_mass : float
        Observed precursor monoisotopic mass (Da)
    peptide_mono_mass : float
        Theoretical peptide monoisotopic mass (Da)
    adjust_precursor_mass_for_c13 : bool
        When an isotope correction was needed, shift the precursor mass by
        the number of 13C spacings before recomputing the error. When False
        the error is recomputed from the unshifted precursor mass.

    Returns
    -------
    float
        Mass error in ppm of the peptide mass

    Raises
    ------
    ValueError
        If the peptide mass is not positive
    """
    if peptide_mono_mass <= 0:
        raise ValueError(f"Peptide mass must be positive, got {peptide_mono_mass}")

    _, correction_count = correct_isotope_selection(del_m)
    if correction_count != 0:
        if adjust_precursor_mass_for_c13:
            precursor_mono_mass -= correction_count * C13_MASS_DIFFERENCE
        del_m = precursor_mono_mass - peptide_mono_mass

    return mass_to_ppm(del_m, peptide_mono_mass)


# =============================================================================
# Search Result
# =============================================================================

class SearchResult:
    """One normalized PSM.

    Parameters
    ----------
    classifier : PeptideCleavageClassifier, optional
        Enzyme rule used to derive the cleavage state (default: trypsin)

    Examples
    --------
    >>> result = SearchResult()
    >>> result.set_peptide_sequence_with_mods("K.AEPTIDER.A")
    >>> result.peptide_clean_sequence, result.peptide_cleavage_state.name
    ('AEPTIDER', 'FULL')
    """

    def __init__(self, classifier: Optional[PeptideCleavageClassifier] = None):
        self.classifier = classifier if classifier is not None else PeptideCleavageClassifier()

        self.result_id = 0
        self.group_id = 0
        self.scan = 0
        self.charge = 0
        self.precursor_mz: Optional[float] = None
        self.parent_ion_mh: Optional[float] = None

        self.protein_name = ""
        self.proteins: List[str] = []
        self.protein_seq_residue_number_start = 0
        self.protein_seq_residue_number_end = 0
        self.peptide_loc_in_protein_start = 0
        self.peptide_loc_in_protein_end = 0

        self._peptide_pre_residues = ""
        self._peptide_post_residues = ""
        self._peptide_clean_sequence = ""
        self._peptide_cleavage_state = PeptideCleavageState.NON_SPECIFIC
        self._peptide_terminus_state = PeptideTerminusState.NONE

        self.peptide_sequence_with_mods = ""
        self.peptide_mod_description = ""
        self.peptide_monoisotopic_mass = 0.0
        self.peptide_mh = 0.0
        self.peptide_delta_mass: Optional[float] = None
        self.peptide_delta_mass_ppm: Optional[float] = None

        self.scores: Dict[str, ScoreValue] = {}
        self.error_messages: List[str] = []
        self.modifications: List[AminoAcidModInfo] = []

        self._compute_peptide_cleavage_state()

    # -------------------------------------------------------------------------
    # Derived cleavage state
    # -------------------------------------------------------------------------

    @property
    def peptide_pre_residues(self) -> str:
        return self._peptide_pre_residues

    @peptide_pre_residues.setter
    def peptide_pre_residues(self, value: Optional[str]) -> None:
        self._peptide_pre_residues = value or ""
        self._compute_peptide_cleavage_state()

    @property
    def peptide_post_residues(self) -> str:
        return self._peptide_post_residues

    @peptide_post_residues.setter
    def peptide_post_residues(self, value: Optional[str]) -> None:
        self._peptide_post_residues = value or ""
        self._compute_peptide_cleavage_state()

    @property
    def peptide_clean_sequence(self) -> str:
        return self._peptide_clean_sequence

    @peptide_clean_sequence.setter
    def peptide_clean_sequence(self, value: Optional[str]) -> None:
        self._peptide_clean_sequence = value or ""
        self._compute_peptide_cleavage_state()

    @property
    def peptide_cleavage_state(self) -> PeptideCleavageState:
        return self._peptide_cleavage_state

    @property
    def peptide_terminus_state(self) -> PeptideTerminusState:
        return self._peptide_terminus_state

    @property
    def number_of_missed_cleavages(self) -> int:
        return self.classifier.compute_number_of_missed_cleavages(self._peptide_clean_sequence)

    def set_classifier(self, classifier: PeptideCleavageClassifier) -> None:
        self.classifier = classifier
        self._compute_peptide_cleavage_state()

    def _compute_peptide_cleavage_state(self) -> None:
        self._peptide_cleavage_state = self.classifier.compute_cleavage_state(
            self._peptide_clean_sequence, self._peptide_pre_residues, self._peptide_post_residues)
        self._peptide_terminus_state = self.classifier.compute_terminus_state(
            self._peptide_clean_sequence, self._peptide_pre_residues, self._peptide_post_residues)

    # -------------------------------------------------------------------------
    # Sequences
    # -------------------------------------------------------------------------

    def set_peptide_sequence_with_mods(self, sequence_with_mods: str,
                                       check_for_prefix_and_suffix: bool = True,
                                       auto_populate_clean_sequence: bool = True) -> None:
        """Store a sequence such as "K.M*PEPTIDE.G".

        The flanking residues are split off, and the clean sequence (and with
        it the cleavage state) is updated when auto_populate_clean_sequence
        is set.
        """
        primary_sequence = sequence_with_mods
        pre_residues = post_residues = ""
        if check_for_prefix_and_suffix:
            parts = split_prefix_and_suffix(sequence_with_mods)
            if parts.has_prefix_and_suffix:
                primary_sequence = parts.primary_sequence
                pre_residues, post_residues = parts.prefix, parts.suffix

        if auto_populate_clean_sequence:
            # Flanks from an earlier sequence never carry over
            self._peptide_pre_residues = pre_residues
            self._peptide_post_residues = post_residues
            self.peptide_clean_sequence = extract_clean_sequence(primary_sequence, False)

        self.peptide_sequence_with_mods = primary_sequence

    def sequence_with_prefix_and_suffix(self, return_sequence_with_mods: bool) -> str:
        """The peptide as "P.SEQUENCE.S" with '-' for protein termini.

        >>> result = SearchResult()
        >>> result.set_peptide_sequence_with_mods("[.M#PEPTIDE.G")
        >>> result.sequence_with_prefix_and_suffix(True)
        '-.M#PEPTIDE.G'
        """
        prefix = TERMINUS_SYMBOL_SEQUEST
        work = self._peptide_pre_residues.strip()
        if work:
            prefix = work[-1]
            if prefix == TERMINUS_SYMBOL_XTANDEM_N_TERMINUS:
                prefix = TERMINUS_SYMBOL_SEQUEST

        suffix = TERMINUS_SYMBOL_SEQUEST
        work = self._peptide_post_residues.strip()
        if work:
            suffix = work[0]
            if suffix == TERMINUS_SYMBOL_XTANDEM_C_TERMINUS:
                suffix = TERMINUS_SYMBOL_SEQUEST

        if return_sequence_with_mods and self.peptide_sequence_with_mods:
            return f"{prefix}.{self.peptide_sequence_with_mods}.{suffix}"
        if not self._peptide_clean_sequence:
            return ""
        return f"{prefix}.{self._peptide_clean_sequence}.{suffix}"

    # -------------------------------------------------------------------------
    # Location in protein
    # -------------------------------------------------------------------------

    def compute_pseudo_peptide_loc_in_protein(self) -> None:
        """Assign placeholder protein coordinates when the protein sequence is unknown.

        Peptides at the protein N-terminus start at residue 1, peptides at the
        C-terminus end at the last residue of a 10000-residue protein, and
        other peptides start at residue 2.
        """
        peptide_length = len(self._peptide_clean_sequence)
        self.protein_seq_residue_number_start = 1
        self.protein_seq_residue_number_end = PSEUDO_PROTEIN_LENGTH

        terminus_state = self._peptide_terminus_state
        if terminus_state in (PeptideTerminusState.PROTEIN_N_TERMINUS,
                              PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS):
            self.peptide_loc_in_protein_start = self.protein_seq_residue_number_start
            self.peptide_loc_in_protein_end = self.peptide_loc_in_protein_start + peptide_length - 1
            if terminus_state == PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS:
                # Peptide spans the whole protein
                self.protein_seq_residue_number_end = self.peptide_loc_in_protein_end
            elif self.peptide_loc_in_protein_end > self.protein_seq_residue_number_end:
                self.protein_seq_residue_number_end = self.peptide_loc_in_protein_end + 1

        elif terminus_state == PeptideTerminusState.PROTEIN_C_TERMINUS:
            self.peptide_loc_in_protein_end = self.protein_seq_residue_number_end
            self.peptide_loc_in_protein_start = self.peptide_loc_in_protein_end - peptide_length + 1
            if self.peptide_loc_in_protein_start < self.protein_seq_residue_number_start:
                self.protein_seq_residue_number_end = self.protein_seq_residue_number_start + 1 + peptide_length
                self.peptide_loc_in_protein_end = self.protein_seq_residue_number_end
                self.peptide_loc_in_protein_start = self.peptide_loc_in_protein_end - peptide_length + 1

        else:
            self.peptide_loc_in_protein_start = self.protein_seq_residue_number_start + 1
            self.peptide_loc_in_protein_end = self.peptide_loc_in_protein_start + peptide_length - 1
            if self.peptide_loc_in_protein_end >= self.protein_seq_residue_number_end:
                self.protein_seq_residue_number_end = self.peptide_loc_in_protein_end + 1

    def determine_residue_terminus_state(self, residue_loc_in_peptide: int) -> ResidueTerminusState:
        """Terminus context of the residue at a 1-based position.

        Uses the peptide and protein coordinates; call
        compute_pseudo_peptide_loc_in_protein first if they are unknown.
        """
        if residue_loc_in_peptide == 1:
            if self.peptide_loc_in_protein_start == self.protein_seq_residue_number_start:
                if self.peptide_loc_in_protein_end == self.protein_seq_residue_number_end:
                    # Peptide spans the whole protein
                    return ResidueTerminusState.PROTEIN_N_AND_C_TERMINUS
                return ResidueTerminusState.PROTEIN_N_TERMINUS
            return ResidueTerminusState.PEPTIDE_N_TERMINUS

        if residue_loc_in_peptide == self.peptide_loc_in_protein_end - self.peptide_loc_in_protein_start + 1:
            if self.peptide_loc_in_protein_end == self.protein_seq_residue_number_end:
                return ResidueTerminusState.PROTEIN_C_TERMINUS
            return ResidueTerminusState.PEPTIDE_C_TERMINUS

        return ResidueTerminusState.NONE

    # -------------------------------------------------------------------------
    # Modifications
    # -------------------------------------------------------------------------

    @property
    def modification_count(self) -> int:
        return len(self.modifications)

    def clear_modifications(self) -> None:
        self.modifications.clear()

    def add_modification(self, definition: ModificationDefinition, residue: str,
                         residue_loc_in_peptide: int, residue_terminus_state: ResidueTerminusState,
                         update_occurrence_counts: bool = True,
                         end_residue_loc_in_peptide: Optional[int] = None) -> AminoAcidModInfo:
        """Apply a resolved modification to a residue.

        Raises
        ------
        InvalidPositionError
            If the position is below 1 (or past the last residue) for a
            modification that is not isotopic
        """
        if definition.modification_type != ModificationType.ISOTOPIC:
            if residue_loc_in_peptide < 1:
                raise InvalidPositionError(
                    f"Invalid value for residueLocInPeptide: {residue_loc_in_peptide} "
                    f"(modification type {definition.modification_type.name})")
            if self._peptide_clean_sequence and residue_loc_in_peptide > len(self._peptide_clean_sequence):
                raise InvalidPositionError(
                    f"Invalid value for residueLocInPeptide: {residue_loc_in_peptide} "
                    f"(peptide length {len(self._peptide_clean_sequence)})")

        if update_occurrence_counts:
            definition.occurrence_count += 1

        mod_info = AminoAcidModInfo(residue, residue_loc_in_peptide, residue_terminus_state,
                                    definition, end_residue_loc_in_peptide)
        self.modifications.append(mod_info)
        return mod_info

    def add_modification_by_mass(self, registry: ModificationRegistry, modification_mass: float,
                                 residue: str, residue_loc_in_peptide: int,
                                 residue_terminus_state: ResidueTerminusState,
                                 update_occurrence_counts: bool = True,
                                 digits_of_precision: int = MASS_DIGITS_OF_PRECISION,
                                 digits_of_precision_loose: int = MASS_DIGITS_OF_PRECISION,
                                 end_residue_loc_in_peptide: Optional[int] = None) -> AminoAcidModInfo:
        """Resolve a mass shift through the registry (registering it if new) and apply it."""
        if residue_loc_in_peptide < 1:
            raise InvalidPositionError(f"Invalid value for residueLocInPeptide: {residue_loc_in_peptide}")

        definition, _ = registry.lookup_modification_definition_by_mass(
            modification_mass, residue, residue_terminus_state,
            digits_of_precision, digits_of_precision_loose, True)
        return self.add_modification(definition, residue, residue_loc_in_peptide, residue_terminus_state,
                                     update_occurrence_counts, end_residue_loc_in_peptide)

    def add_dynamic_modification(self, registry: ModificationRegistry, modification_symbol: str,
                                 residue: str, residue_loc_in_peptide: int,
                                 residue_terminus_state: ResidueTerminusState,
                                 update_occurrence_counts: bool = True) -> AminoAcidModInfo:
        """Resolve a display symbol through the registry and apply it.

        Raises
        ------
        ModificationNotFoundError
            If no dynamic mod uses the symbol
        InvalidPositionError
            If the position is below 1
        """
        definition, found = registry.lookup_dynamic_modification_definition_by_target_info(
            modification_symbol, residue, residue_terminus_state)
        if not found:
            raise ModificationNotFoundError(
                f"Modification symbol not found: {modification_symbol}; "
                f"TerminusState = {residue_terminus_state.name}")
        if residue_loc_in_peptide < 1:
            raise InvalidPositionError(f"Invalid value for residueLocInPeptide: {residue_loc_in_peptide}")
        return self.add_modification(definition, residue, residue_loc_in_peptide, residue_terminus_state,
                                     update_occurrence_counts)

    def add_isotopic_modifications(self, registry: ModificationRegistry,
                                   update_occurrence_counts: bool = True) -> int:
        """Apply every isotopic mod of the run to the whole peptide (position 0)."""
        added = 0
        for index in range(registry.modification_count):
            if registry.get_modification_type_by_index(index) != ModificationType.ISOTOPIC:
                continue
            self.add_modification(registry.get_modification_by_index(index), NO_AFFECTED_ATOM_SYMBOL, 0,
                                  ResidueTerminusState.NONE, update_occurrence_counts)
            added += 1
        return added

    def add_static_residue_modifications(self, registry: ModificationRegistry,
                                         update_occurrence_counts: bool = True) -> int:
        """Apply static mods to every residue they target.

        For engines whose sequences do not mark static mods.
        """
        static_mods = [definition for definition in registry
                       if definition.modification_type == ModificationType.STATIC]
        added = 0
        for index, residue in enumerate(self._peptide_clean_sequence):
            for definition in static_mods:
                if not definition.target_residues_contain(residue):
                    continue
                residue_loc = index + 1
                self.add_modification(definition, residue, residue_loc,
                                      self.determine_residue_terminus_state(residue_loc),
                                      update_occurrence_counts)
                added += 1
        return added

    def add_static_terminus_modifications(self, registry: ModificationRegistry,
                                          allow_duplicate_mod_on_terminus: bool = False,
                                          update_occurrence_counts: bool = True) -> int:
        """Apply the peptide and protein terminus static mods that fit this peptide.

        Unless allow_duplicate_mod_on_terminus is set, a terminus mod is
        skipped when the peptide already carries the same definition, or a
        mod at the same position with the same tag or mass.
        """
        if not self._peptide_clean_sequence:
            return 0

        at_protein_n_terminus = self._peptide_terminus_state in (
            PeptideTerminusState.PROTEIN_N_TERMINUS, PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS)
        at_protein_c_terminus = self._peptide_terminus_state in (
            PeptideTerminusState.PROTEIN_C_TERMINUS, PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS)
        last_residue_loc = len(self._peptide_clean_sequence)

        added = 0
        for index in range(registry.modification_count):
            modification_type = registry.get_modification_type_by_index(index)
            definition = registry.get_modification_by_index(index)
            target = definition.target_residues

            if modification_type == ModificationType.TERMINAL_PEPTIDE_STATIC:
                if target == N_TERMINAL_PEPTIDE_SYMBOL:
                    residue_loc = 1
                    terminus_state = (ResidueTerminusState.PROTEIN_N_TERMINUS if at_protein_n_terminus
                                      else ResidueTerminusState.PEPTIDE_N_TERMINUS)
                elif target == C_TERMINAL_PEPTIDE_SYMBOL:
                    residue_loc = last_residue_loc
                    terminus_state = (ResidueTerminusState.PROTEIN_C_TERMINUS if at_protein_c_terminus
                                      else ResidueTerminusState.PEPTIDE_C_TERMINUS)
                else:
                    continue

            elif modification_type == ModificationType.PROTEIN_TERMINUS_STATIC:
                if target == N_TERMINAL_PROTEIN_SYMBOL and at_protein_n_terminus:
                    residue_loc = 1
                    terminus_state = ResidueTerminusState.PROTEIN_N_TERMINUS
                elif target == C_TERMINAL_PROTEIN_SYMBOL and at_protein_c_terminus:
                    residue_loc = last_residue_loc
                    terminus_state = ResidueTerminusState.PROTEIN_C_TERMINUS
                else:
                    continue

            else:
                continue

            if not allow_duplicate_mod_on_terminus and self._terminus_mod_already_present(definition, residue_loc):
                continue

            self.add_modification(definition, self._peptide_clean_sequence[residue_loc - 1], residue_loc,
                                  terminus_state, update_occurrence_counts)
            added += 1
        return added

    def _terminus_mod_already_present(self, definition: ModificationDefinition, residue_loc: int) -> bool:
        for mod_info in self.modifications:
            if mod_info.mod_definition is definition:
                return True
            if mod_info.residue_loc_in_peptide != residue_loc:
                continue
            if mod_info.mod_definition.mass_correction_tag == definition.mass_correction_tag:
                return True
            mass_difference = abs(mod_info.mod_definition.modification_mass - definition.modification_mass)
            if round(mass_difference, MASS_DIGITS_OF_PRECISION) == 0:
                return True
        return False

    def _sorted_modifications(self) -> List[AminoAcidModInfo]:
        return sorted(self.modifications,
                      key=lambda mod_info: (mod_info.residue_loc_in_peptide,
                                            mod_info.mod_definition.mass_correction_tag))

    def add_modifications_to_clean_sequence(self) -> str:
        """Clean sequence with the symbols of dynamic and unknown mods inserted."""
        sequence_with_mods = self._peptide_clean_sequence
        # Insert from the last position backwards so earlier positions stay valid
        for mod_info in reversed(self._sorted_modifications()):
            if mod_info.mod_definition.modification_type not in (ModificationType.DYNAMIC,
                                                                 ModificationType.UNKNOWN):
                continue
            loc = mod_info.residue_loc_in_peptide
            sequence_with_mods = (sequence_with_mods[:loc] + mod_info.mod_definition.modification_symbol +
                                  sequence_with_mods[loc:])
        return sequence_with_mods

    def update_mod_description(self) -> str:
        """Comma-separated "tag:position" list ordered by position and tag.

        >>> result = SearchResult()
        >>> result.peptide_clean_sequence = "MPEPTIDE"
        >>> oxidation = ModificationDefinition('*', 15.994915, "M", ModificationType.DYNAMIC, "Plus1Oxy")
        >>> _ = result.add_modification(oxidation, 'M', 1, ResidueTerminusState.PEPTIDE_N_TERMINUS)
        >>> result.update_mod_description()
        'Plus1Oxy:1'
        """
        self.peptide_mod_description = ",".join(
            f"{mod_info.mod_definition.mass_correction_tag.strip()}:{mod_info.residue_loc_in_peptide}"
            for mod_info in self._sorted_modifications()
        )
        return self.peptide_mod_description

    def apply_modification_information(self) -> None:
        """Rebuild the sequence with mods and the mod description."""
        self.peptide_sequence_with_mods = self.add_modifications_to_clean_sequence()
        self.update_mod_description()

    # -------------------------------------------------------------------------
    # Masses
    # -------------------------------------------------------------------------

    def compute_monoisotopic_mass(self, calculator: PeptideMassCalculator) -> float:
        """Theoretical mass of the clean sequence plus the applied mods.

        Raises
        ------
        InvalidResidueError
            If the clean sequence has a character without a residue mass
        """
        modified_residues = [
            PeptideSequenceModInfo(mod_info.residue_loc_in_peptide,
                                   mod_info.mod_definition.modification_mass,
                                   mod_info.mod_definition.affected_atom)
            for mod_info in self.modifications
        ]
        self.peptide_monoisotopic_mass = calculator.compute_sequence_mass(
            self._peptide_clean_sequence, modified_residues)
        self.peptide_mh = calculator.convolute_mass(self.peptide_monoisotopic_mass, 0, 1)
        return self.peptide_monoisotopic_mass

    # -------------------------------------------------------------------------
    # Scores
    # -------------------------------------------------------------------------

    def set_score(self, name: str, value) -> ScoreValue:
        """Store a score from engine text (or a number)."""
        if isinstance(value, ScoreValue):
            score = value
        elif isinstance(value, (int, float, np.floating, np.integer)):
            score = ScoreValue.from_number(float(value))
        else:
            score = ScoreValue.from_text(value)
        self.scores[name] = score
        return score

    def get_score(self, name: str) -> Optional[float]:
        score = self.scores.get(name)
        return None if score is None else score.value

    def get_score_text(self, name: str) -> str:
        score = self.scores.get(name)
        return "" if score is None else score.raw_text

    def add_error(self, message: str) -> None:
        self.error_messages.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.error_messages)

    def __repr__(self) -> str:
        return (f"SearchResult(scan={self.scan}, charge={self.charge}, "
                f"peptide={self.sequence_with_prefix_and_suffix(True)!r})")
