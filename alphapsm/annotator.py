"""Annotate raw search engine rows into normalized SearchResult records.

The annotator runs the same steps for every PSM, whatever engine produced it:

1. Split the flanking residues from the peptide
2. Resolve the modifications extracted by the engine adapter, by display
   symbol or by mass (unknown masses are registered on the fly)
3. Set the clean sequence, which derives the cleavage and terminus states
4. Apply isotopic and static terminus modifications of the run
5. Rebuild the sequence with modification symbols
6. Compute the theoretical monoisotopic mass
7. Compute the isotope-corrected mass error (Da and ppm)
8. Build the modification description

The only state shared between PSMs is the ModificationRegistry, so a batch
can be stopped between rows without emitting a partially annotated record.

Examples
--------
>>> annotator = SearchResultAnnotator(ModificationRegistry(), PeptideMassCalculator())
>>> result = annotator.annotate(RawPsmRow(peptide="K.LCDE.F", scan=10, charge=1))
>>> round(result.peptide_monoisotopic_mass, 4)
478.1733
"""

import logging
from typing import Callable, Iterable, Iterator, Optional

from .adapters.base import ExtractedModification, RawPsmRow, extract_symbol_modifications
from .cleavage import PeptideCleavageClassifier, extract_clean_sequence, split_prefix_and_suffix
from .config import AnnotationOptions, SearchEngineParameters
from .formula import ChemicalFormulaEvaluator, FormulaParseError
from .mass_calculator import InvalidResidueError, PeptideMassCalculator, ppm_to_mass
from .registry import ModificationRegistry
from .search_result import (
    InvalidPositionError,
    ModificationNotFoundError,
    SearchResult,
    compute_del_m_corrected_ppm,
)

logger = logging.getLogger(__name__)

# Mass reported when the sequence has a residue without a mass
INVALID_PEPTIDE_MASS = 0.0

# Mass mismatch warnings: log the first few, then every Nth
WARNING_THRESHOLD_FIRST = 10
WARNING_INTERVAL = 100


class SearchResultAnnotator:
    """Turn RawPsmRow objects into SearchResult records.

    Parameters
    ----------
    registry : ModificationRegistry
        Modifications of the run; grows as unknown masses are seen
    calculator : PeptideMassCalculator
        Mass calculator (required)
    classifier : PeptideCleavageClassifier, optional
        Enzyme rule (default: trypsin)
    options : AnnotationOptions, optional
        Precision and mass error settings
    search_engine_name : str
        Used in log messages

    Raises
    ------
    ValueError
        If the registry or the mass calculator is missing
    """

    def __init__(self, registry: ModificationRegistry,
                 calculator: PeptideMassCalculator,
                 classifier: Optional[PeptideCleavageClassifier] = None,
                 options: Optional[AnnotationOptions] = None,
                 search_engine_name: str = ""):
        if registry is None:
            raise ValueError("SearchResultAnnotator requires a ModificationRegistry")
        if calculator is None:
            raise ValueError("SearchResultAnnotator requires a PeptideMassCalculator")

        self.registry = registry
        self.calculator = calculator
        self.classifier = classifier if classifier is not None else PeptideCleavageClassifier()
        self.options = options if options is not None else AnnotationOptions()
        self.search_engine_name = search_engine_name

        self.calculator.charge_carrier_mass = self.options.charge_carrier_mass

        self._next_result_id = 1
        self.delta_mass_warning_count = 0
        self.rows_annotated = 0
        self.rows_with_errors = 0

    @classmethod
    def from_parameters(cls, parameters: SearchEngineParameters,
                        registry: Optional[ModificationRegistry] = None,
                        calculator: Optional[PeptideMassCalculator] = None,
                        options: Optional[AnnotationOptions] = None,
                        evaluator: Optional[ChemicalFormulaEvaluator] = None) -> 'SearchResultAnnotator':
        """Build an annotator for one search.

        Registers the declared modifications, uses the declared enzyme and
        applies any terminus mass overrides.
        """
        if registry is None:
            registry = ModificationRegistry()
        if calculator is None:
            calculator = PeptideMassCalculator()
        if options is None:
            options = AnnotationOptions.for_engine(parameters.search_engine_name)

        parameters.apply_to_registry(registry, evaluator)

        annotator = cls(registry, calculator, parameters.create_classifier(), options,
                        parameters.search_engine_name)
        if parameters.n_terminus_mass_change:
            annotator.update_peptide_n_terminus_mass(parameters.n_terminus_mass_change)
        if parameters.c_terminus_mass_change:
            annotator.update_peptide_c_terminus_mass(parameters.c_terminus_mass_change)
        return annotator

    # =========================================================================
    # Terminus masses
    # =========================================================================

    def update_peptide_n_terminus_mass(self, new_n_terminus_mass: float) -> bool:
        """Replace the N-terminus mass if it differs at 3 decimal places."""
        if round(abs(new_n_terminus_mass - self.calculator.peptide_n_terminus_mass), 3) > 0:
            logger.info(f"Peptide N-terminus mass changed from "
                        f"{self.calculator.peptide_n_terminus_mass:.4f} to {new_n_terminus_mass:.4f}")
            self.calculator.peptide_n_terminus_mass = new_n_terminus_mass
            return True
        return False

    def update_peptide_c_terminus_mass(self, new_c_terminus_mass: float) -> bool:
        """Replace the C-terminus mass if it differs at 3 decimal places."""
        if round(abs(new_c_terminus_mass - self.calculator.peptide_c_terminus_mass), 3) > 0:
            logger.info(f"Peptide C-terminus mass changed from "
                        f"{self.calculator.peptide_c_terminus_mass:.4f} to {new_c_terminus_mass:.4f}")
            self.calculator.peptide_c_terminus_mass = new_c_terminus_mass
            return True
        return False

    # =========================================================================
    # Annotation
    # =========================================================================

    def annotate(self, row: RawPsmRow) -> SearchResult:
        """Annotate one row.

        Per-modification and per-residue problems are recorded in the
        result's error_messages; the result is always returned.
        """
        result = SearchResult(self.classifier)
        self._copy_row_fields(result, row)

        # Flanking residues and primary sequence
        if row.prefix_residues is not None and row.suffix_residues is not None:
            primary_sequence = row.peptide.strip()
            prefix, suffix = row.prefix_residues, row.suffix_residues
        else:
            parts = split_prefix_and_suffix(row.peptide.strip())
            primary_sequence = parts.primary_sequence
            prefix = row.prefix_residues if row.prefix_residues is not None else parts.prefix
            suffix = row.suffix_residues if row.suffix_residues is not None else parts.suffix

        if row.modifications is None:
            clean_sequence, extracted = extract_symbol_modifications(primary_sequence)
        else:
            extracted = row.modifications
            clean_sequence = row.clean_sequence
            if clean_sequence is None:
                clean_sequence = extract_clean_sequence(primary_sequence, False)

        result.peptide_pre_residues = prefix
        result.peptide_post_residues = suffix
        result.peptide_clean_sequence = clean_sequence
        result.peptide_sequence_with_mods = primary_sequence

        if result.protein_seq_residue_number_start == 0:
            result.compute_pseudo_peptide_loc_in_protein()

        for modification in extracted:
            self._resolve_modification(result, modification)

        if not row.static_residue_mods_reported:
            result.add_static_residue_modifications(self.registry, self.options.update_occurrence_counts)

        result.add_isotopic_modifications(self.registry, self.options.update_occurrence_counts)
        result.add_static_terminus_modifications(self.registry,
                                                 self.options.allow_duplicate_mod_on_terminus,
                                                 self.options.update_occurrence_counts)

        result.apply_modification_information()

        if self._compute_mass(result):
            if row.calculated_mass is not None:
                self.validate_matching_monoisotopic_mass(
                    result.peptide_clean_sequence, result.peptide_monoisotopic_mass, row.calculated_mass)
            self._compute_delta_mass(result, row)

        self.rows_annotated += 1
        if result.has_errors:
            self.rows_with_errors += 1
        return result

    def annotate_rows(self, rows: Iterable[RawPsmRow],
                      should_stop: Optional[Callable[[], bool]] = None) -> Iterator[SearchResult]:
        """Annotate rows lazily.

        ``should_stop`` is checked before each row; once it returns True no
        further rows are read.
        """
        annotated = 0
        for row in rows:
            if should_stop is not None and should_stop():
                logger.info(f"Annotation stopped after {annotated} PSMs")
                return
            yield self.annotate(row)
            annotated += 1

        logger.info(f"Annotated {annotated} PSMs; {len(self.registry)} modifications registered")

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _copy_row_fields(self, result: SearchResult, row: RawPsmRow) -> None:
        if row.result_id:
            result.result_id = row.result_id
            self._next_result_id = max(self._next_result_id, row.result_id + 1)
        else:
            result.result_id = self._next_result_id
            self._next_result_id += 1

        result.scan = row.scan
        result.charge = row.charge
        result.precursor_mz = row.precursor_mz
        result.parent_ion_mh = row.parent_ion_mh
        result.proteins = list(row.proteins)
        if row.proteins:
            result.protein_name = row.proteins[0]

        for name, value in row.scores.items():
            result.set_score(name, value)

    def _resolve_modification(self, result: SearchResult, modification: ExtractedModification) -> None:
        """Resolve one extracted modification and apply it to the result."""
        loc = modification.residue_loc_in_peptide
        residue = modification.residue
        terminus_state = result.determine_residue_terminus_state(loc)

        try:
            if modification.symbol is not None:
                result.add_dynamic_modification(self.registry, modification.symbol, residue, loc,
                                                terminus_state, self.options.update_occurrence_counts)
                return

            mass = modification.mass
            if mass is None and modification.name:
                mass = self.registry.lookup_modification_mass_by_name(modification.name)
            if mass is None:
                self._record_error(result, f"Unknown modification '{modification.name}' "
                                           f"on {residue}{loc}")
                return

            result.add_modification_by_mass(self.registry, mass, residue, loc, terminus_state,
                                            self.options.update_occurrence_counts,
                                            self.options.digits_of_precision,
                                            self.options.digits_of_precision_loose,
                                            modification.end_residue_loc_in_peptide)

        except (InvalidPositionError, ModificationNotFoundError, FormulaParseError) as error:
            self._record_error(result, str(error))

    def _compute_mass(self, result: SearchResult) -> bool:
        try:
            result.compute_monoisotopic_mass(self.calculator)
        except (InvalidResidueError, FormulaParseError) as error:
            result.peptide_monoisotopic_mass = INVALID_PEPTIDE_MASS
            result.peptide_mh = INVALID_PEPTIDE_MASS
            self._record_error(result, str(error))
            return False
        return True

    def _compute_delta_mass(self, result: SearchResult, row: RawPsmRow) -> None:
        """Observed minus theoretical mass, corrected for 13C isotope selection."""
        peptide_mass = result.peptide_monoisotopic_mass
        if peptide_mass <= 0:
            return

        precursor_mass = row.precursor_mass
        if precursor_mass is None and row.precursor_mz is not None and row.charge > 0:
            precursor_mass = self.calculator.convolute_mass(row.precursor_mz, row.charge, 0)
        if precursor_mass is None and row.parent_ion_mh is not None:
            precursor_mass = self.calculator.mh_to_monoisotopic_mass(row.parent_ion_mh)

        if precursor_mass is not None:
            del_m = precursor_mass - peptide_mass
        elif row.mass_error_da is not None:
            del_m = row.mass_error_da
            precursor_mass = peptide_mass + del_m
        elif row.mass_error_ppm is not None:
            del_m = ppm_to_mass(row.mass_error_ppm, peptide_mass)
            precursor_mass = peptide_mass + del_m
        else:
            return

        if result.precursor_mz is None and row.charge > 0:
            result.precursor_mz = self.calculator.monoisotopic_mass_to_mz(precursor_mass, row.charge)
        if result.parent_ion_mh is None:
            result.parent_ion_mh = self.calculator.convolute_mass(precursor_mass, 0, 1)

        result.peptide_delta_mass = del_m
        result.peptide_delta_mass_ppm = compute_del_m_corrected_ppm(
            del_m, precursor_mass, peptide_mass, self.options.adjust_precursor_mass_for_c13)

    def _record_error(self, result: SearchResult, message: str) -> None:
        result.add_error(message)
        logger.warning(f"Scan {result.scan}, peptide {result.sequence_with_prefix_and_suffix(False)}: {message}")

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_matching_monoisotopic_mass(self, peptide: str, computed_mass: float,
                                            engine_mass: float) -> bool:
        """Compare our mass with the one the search engine reported.

        The allowed difference is 0.1 Da, or mass / 50000 for peptides above
        5000 Da. Mismatches are logged (first 10, then every 100th).

        Returns
        -------
        bool
            True if the masses agree
        """
        threshold = max(0.1, engine_mass / 50000)
        if abs(computed_mass - engine_mass) <= threshold:
            return True

        self.delta_mass_warning_count += 1
        count = self.delta_mass_warning_count
        if count <= WARNING_THRESHOLD_FIRST or count % WARNING_INTERVAL == 0:
            shown = peptide if len(peptide) < 27 else peptide[:27] + "..."
            engine = self.search_engine_name or "the search engine"
            logger.warning(f"The computed monoisotopic mass is more than {threshold:.2f} Da away from "
                           f"the mass computed by {engine}: {computed_mass:.4f} vs. {engine_mass:.4f}; "
                           f"peptide {shown} (warning {count})")
        return False
