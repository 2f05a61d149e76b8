"""SEQUEST synopsis files.

Peptides are written as ``K.M*PEPTIDE.G``; dynamic mods are display
symbols and static mods are not marked.
"""

from typing import Dict, Tuple

from .base import EngineAdapter, ResultsFileFormat


class SequestAdapter(EngineAdapter):
    """Adapter for SEQUEST synopsis / first-hits files."""

    search_engine_name = "SEQUEST"
    results_file_format = ResultsFileFormat.SEQUEST

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("ScanNum", "Scan"),
        "charge": ("ChargeState", "Charge"),
        "peptide": ("Peptide",),
        "protein": ("Reference", "Protein"),
        "parent_ion_mh": ("MH",),
        "mass_error_da": ("DelM",),
    }
    SCORE_COLUMNS = ("XCorr", "DelCn", "DelCn2", "Sp", "RankSp", "RankXc", "Ions_Observed", "Ions_Expected")
