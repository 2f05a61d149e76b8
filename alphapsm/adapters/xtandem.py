"""X!Tandem synopsis files.

Peptides are written with display symbols, e.g. ``K.M*PEPTIDE.G``; the
protein termini may appear as ``[`` and ``]``. Static mods are not marked.
Peptide_MH is the theoretical (M+H)+ and Delta_Mass the theoretical minus
the observed mass, so the observed (M+H)+ is their difference. The
expectation value is reported as its base-10 logarithm.
"""

from typing import Dict, Optional, Tuple

from ..mass_calculator import convolute_mass
from ..registry import parse_float
from .base import EngineAdapter, RawPsmRow, ResultsFileFormat, parse_int

EXPECTATION_VALUE_LOG_COLUMN = "Peptide_Expectation_Value_Log(e)"
EXPECTATION_VALUE_COLUMN = "Peptide_Expectation_Value"


def expectation_value_from_log(text: str) -> Optional[str]:
    """E-value text from its base-10 logarithm.

    >>> expectation_value_from_log("-2.5")
    '3.16e-03'
    """
    log_value = parse_float(text)
    if log_value is None:
        return None
    return f"{10 ** log_value:.2e}"


class XTandemAdapter(EngineAdapter):
    """Adapter for X!Tandem synopsis files."""

    search_engine_name = "X!Tandem"
    results_file_format = ResultsFileFormat.XTANDEM

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan",),
        "charge": ("Charge",),
        "peptide": ("Peptide_Sequence",),
        "protein": ("Protein_Name", "Protein"),
        "theoretical_mh": ("Peptide_MH",),
        "mass_error_da": ("Delta_Mass",),
        "mass_error_ppm": ("DelM_PPM",),
        "result_id": ("Result_ID",),
    }
    SCORE_COLUMNS = ("Peptide_Hyperscore", EXPECTATION_VALUE_LOG_COLUMN, "Multiple_Protein_Count",
                     "DeltaCn2", "y_score", "y_ions", "b_score", "b_ions",
                     "Peptide_Intensity_Log(I)")

    def parse_record(self, record: Dict[str, str], columns: Dict[str, str]) -> Optional[RawPsmRow]:
        row = super().parse_record(record, columns)
        if row is None:
            return None

        row.result_id = parse_int(self.get_value(record, columns, "result_id")) or 0

        theoretical_mh = self.get_float(record, columns, "theoretical_mh")
        if theoretical_mh is not None:
            row.calculated_mass = convolute_mass(theoretical_mh, 1, 0)
            if row.mass_error_da is not None:
                row.parent_ion_mh = theoretical_mh - row.mass_error_da
                # Observed minus theoretical, as for the other engines
                row.mass_error_da = -row.mass_error_da

        log_text = row.scores.get(EXPECTATION_VALUE_LOG_COLUMN)
        if log_text:
            expectation_value = expectation_value_from_log(log_text)
            if expectation_value is not None:
                row.scores[EXPECTATION_VALUE_COLUMN] = expectation_value
        return row
