"""MODa and MODPlus results.

Both engines write mass shifts after the modified residue as signed
numbers, e.g. ``K.AM+16EPTIDER.G`` or ``R.C+57.021PEPTIDE.-``. Static mods
declared in the parameter file are implied rather than written. The
observed mass is the uncharged monoisotopic mass.
"""

from typing import Dict, Tuple

from .base import (
    EngineAdapter,
    RawPsmRow,
    ResultsFileFormat,
    extract_numeric_modifications,
    split_flanked_peptide,
)


class MODaAdapter(EngineAdapter):
    """Adapter for MODa results."""

    search_engine_name = "MODa"
    results_file_format = ResultsFileFormat.MODA

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("ScanNo", "Scan", "Index"),
        "charge": ("Charge",),
        "peptide": ("Peptide",),
        "protein": ("Protein",),
        "precursor_mass": ("ObservedMonoMass", "ObservedMW"),
        "calculated_mass": ("CalculatedMonoMass", "CalculatedMW"),
    }
    SCORE_COLUMNS = ("Score", "Probability", "DeltaMass", "PeptidePosition")
    PROTEIN_SEPARATOR = ';'

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        flanked = split_flanked_peptide(row.peptide)
        if flanked is not None:
            row.prefix_residues, row.peptide, row.suffix_residues = flanked
        row.clean_sequence, row.modifications = extract_numeric_modifications(row.peptide)


class MODPlusAdapter(MODaAdapter):
    """Adapter for MODPlus results."""

    search_engine_name = "MODPlus"
    results_file_format = ResultsFileFormat.MODPLUS

    SCORE_COLUMNS = ("Score", "Probability", "DeltaMass", "NTT", "ModificationAnnotation")
