"""MaxQuant msms.txt / evidence.txt results.

Modified sequences name each modification in parentheses after the
residue, with terminus mods before the first residue::

    _(Acetyl (Protein N-term))M(Oxidation (M))PEPTIDEK_
    _(ac)M(ox)PEPTIDEK_

Names are converted to masses from their elemental compositions. Fixed
mods are not shown in the modified sequence.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..formula import ChemicalFormulaEvaluator
from .base import (
    EngineAdapter,
    ExtractedModification,
    RawPsmRow,
    ResultsFileFormat,
    anchor_leading_modifications,
    is_residue_code,
)

logger = logging.getLogger(__name__)

# Elemental composition of common MaxQuant modifications, keyed by the
# lowercase name without the "(residues)" part; two-letter keys are the
# abbreviations used by newer MaxQuant versions
MAXQUANT_MODIFICATION_COMPOSITIONS = {
    "acetyl": "H(2) C(2) O",
    "ac": "H(2) C(2) O",
    "oxidation": "O",
    "ox": "O",
    "phospho": "H O(3) P",
    "ph": "H O(3) P",
    "carbamidomethyl": "H(3) C(2) N O",
    "cam": "H(3) C(2) N O",
    "deamidation": "H(-1) N(-1) O",
    "de": "H(-1) N(-1) O",
    "gln->pyro-glu": "H(-3) N(-1)",
    "gl": "H(-3) N(-1)",
    "glu->pyro-glu": "H(-2) O(-1)",
    "methyl": "H(2) C",
    "me": "H(2) C",
    "dimethyl": "H(4) C(2)",
    "glygly": "H(6) C(4) N(2) O(2)",
    "gg": "H(6) C(4) N(2) O(2)",
    "amidated": "H N O(-1)",
}


def modification_base_name(name: str) -> str:
    """Strip the residue list: "Oxidation (M)" becomes "Oxidation"."""
    return name.split(" (")[0].strip()


class MaxQuantAdapter(EngineAdapter):
    """Adapter for MaxQuant msms.txt and evidence.txt files.

    Parameters
    ----------
    compositions : dict, optional
        Additional name -> composition entries (e.g. from modifications.xml)
    evaluator : ChemicalFormulaEvaluator, optional
        Used to compute composition masses
    """

    search_engine_name = "MaxQuant"
    results_file_format = ResultsFileFormat.MAXQUANT

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan number", "MS/MS scan number"),
        "charge": ("Charge",),
        "peptide": ("Sequence",),
        "modified_sequence": ("Modified sequence",),
        "prefix": ("Amino acid before",),
        "suffix": ("Amino acid after",),
        "protein": ("Proteins", "Leading proteins"),
        "precursor_mz": ("m/z",),
        "mass_error_ppm": ("Mass error [ppm]",),
        "calculated_mass": ("Mass",),
    }
    SCORE_COLUMNS = ("Score", "Delta score", "PEP", "Localization prob", "Missed cleavages")
    PROTEIN_SEPARATOR = ';'

    def __init__(self, compositions: Optional[Dict[str, str]] = None,
                 evaluator: Optional[ChemicalFormulaEvaluator] = None):
        self.compositions = dict(MAXQUANT_MODIFICATION_COMPOSITIONS)
        if compositions:
            self.compositions.update({name.lower(): formula for name, formula in compositions.items()})
        self.evaluator = evaluator if evaluator is not None else ChemicalFormulaEvaluator()
        self._mass_cache: Dict[str, Optional[float]] = {}

    def modification_mass(self, name: str) -> Optional[float]:
        """Mass of a MaxQuant modification name; None if the composition is unknown."""
        key = modification_base_name(name).lower()
        if key not in self._mass_cache:
            formula = self.compositions.get(key)
            self._mass_cache[key] = (self.evaluator.try_compute_mass(formula, name)
                                     if formula is not None else None)
        return self._mass_cache[key]

    def parse_modified_sequence(self, modified_sequence: str) -> Tuple[str, List[ExtractedModification]]:
        """Clean sequence and modifications of a MaxQuant modified sequence.

        Raises
        ------
        ValueError
            If the parentheses are unbalanced
        """
        clean = []
        modifications = []
        position = 0
        while position < len(modified_sequence):
            char = modified_sequence[position]

            if char == '(':
                depth = 1
                end = position + 1
                while end < len(modified_sequence) and depth:
                    if modified_sequence[end] == '(':
                        depth += 1
                    elif modified_sequence[end] == ')':
                        depth -= 1
                    end += 1
                if depth:
                    raise ValueError(f"Unbalanced parentheses in {modified_sequence}")

                name = modified_sequence[position + 1:end - 1]
                residue = clean[-1] if clean else ""
                modifications.append(ExtractedModification(
                    residue, len(clean), mass=self.modification_mass(name), name=modification_base_name(name)))
                position = end
                continue

            if is_residue_code(char):
                clean.append(char)
            position += 1

        clean_sequence = "".join(clean)
        return clean_sequence, anchor_leading_modifications(modifications, clean_sequence)

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        modified_sequence = self.get_value(record, columns, "modified_sequence")
        if not modified_sequence:
            row.clean_sequence = row.peptide
            row.modifications = []
            return

        row.clean_sequence, row.modifications = self.parse_modified_sequence(modified_sequence)
        if row.clean_sequence != row.peptide:
            logger.debug(f"Modified sequence {modified_sequence} does not match sequence {row.peptide}")
