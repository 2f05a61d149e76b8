"""MSFragger (Philosopher) psm.tsv results.

The peptide column is unmodified; all static and variable mods are listed
in "Assigned Modifications" as position, residue and mass::

    5C(57.0215), 15M(15.9949), N-term(42.0106)
"""

import re
from typing import Dict, List, Tuple

from .base import EngineAdapter, ExtractedModification, RawPsmRow, ResultsFileFormat

_ASSIGNED_MOD = re.compile(
    r"(?:(?P<position>\d+)(?P<residue>[A-Z])|(?P<terminus>[NnCc]-term))\((?P<mass>[+-]?\d*\.?\d+)\)"
)

# Spectrum names end in ".scan.scan.charge"
_SPECTRUM_SCAN = re.compile(r"\.(\d+)\.\d+\.\d+$")


def parse_assigned_modifications(text: str, clean_sequence: str) -> List[ExtractedModification]:
    """Parse an "Assigned Modifications" value.

    >>> mods = parse_assigned_modifications("N-term(42.0106), 3M(15.9949)", "PEMTIDE")
    >>> [(mod.residue, mod.residue_loc_in_peptide, mod.mass) for mod in mods]
    [('P', 1, 42.0106), ('M', 3, 15.9949)]

    Raises
    ------
    ValueError
        If an entry cannot be parsed
    """
    modifications = []
    for entry in text.split(','):
        entry = entry.strip()
        if not entry:
            continue
        match = _ASSIGNED_MOD.fullmatch(entry)
        if match is None:
            raise ValueError(f"Unrecognized modification '{entry}'")

        if match.group("terminus"):
            position = 1 if match.group("terminus")[0] in "Nn" else len(clean_sequence)
            residue = clean_sequence[position - 1] if clean_sequence else ""
        else:
            position = int(match.group("position"))
            residue = match.group("residue")
        modifications.append(ExtractedModification(residue, position, mass=float(match.group("mass"))))
    return modifications


class MSFraggerAdapter(EngineAdapter):
    """Adapter for MSFragger psm.tsv files."""

    search_engine_name = "MSFragger"
    results_file_format = ResultsFileFormat.MSFRAGGER

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan", "ScanNum"),
        "spectrum": ("Spectrum",),
        "charge": ("Charge",),
        "peptide": ("Peptide",),
        "modifications": ("Assigned Modifications",),
        "prefix": ("Prev AA",),
        "suffix": ("Next AA",),
        "protein": ("Protein",),
        "precursor_mass": ("Calibrated Observed Mass", "Observed Mass"),
        "calculated_mass": ("Calculated Peptide Mass",),
    }
    SCORE_COLUMNS = ("Hyperscore", "Nextscore", "Expectation", "PeptideProphet Probability",
                     "Delta Mass", "Number of Missed Cleavages")
    static_residue_mods_reported = True

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        if not row.scan:
            match = _SPECTRUM_SCAN.search(self.get_value(record, columns, "spectrum"))
            if match is not None:
                row.scan = int(match.group(1))

        row.clean_sequence = row.peptide
        row.modifications = parse_assigned_modifications(
            self.get_value(record, columns, "modifications"), row.clean_sequence)
