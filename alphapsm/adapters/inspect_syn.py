"""InSpecT synopsis files.

Protein termini are written as ``*``, e.g. ``*.MPEPT+16IDE.K``. A
modification follows its residue either as an integer mass shift
(``+16``), as a short lower-case name (``phos``) or as a display symbol.
A mass shift before the first residue modifies the N-terminus, one after
the last residue the C-terminus. Static mods are not written.
"""

import re
from typing import Dict, List, Tuple

from .base import (
    NUMERIC_MOD_PATTERN,
    EngineAdapter,
    ExtractedModification,
    RawPsmRow,
    ResultsFileFormat,
    anchor_leading_modifications,
    is_residue_code,
    parse_int,
    split_flanked_peptide,
)

TERMINUS_SYMBOL_INSPECT = "*"
PHOS_MOD_NAME = "phos"
PHOS_MOD_MASS = 79.9663

_MOD_NAME_PATTERN = re.compile(r"[a-z]+")


def replace_terminus_symbols(peptide: str) -> str:
    """Write InSpecT's ``*`` termini as ``-``.

    >>> replace_terminus_symbols("*.MPEPTIDE.*")
    '-.MPEPTIDE.-'
    """
    if peptide.startswith(TERMINUS_SYMBOL_INSPECT + "."):
        peptide = "-" + peptide[len(TERMINUS_SYMBOL_INSPECT):]
    if peptide.endswith("." + TERMINUS_SYMBOL_INSPECT):
        peptide = peptide[:-len(TERMINUS_SYMBOL_INSPECT)] + "-"
    return peptide


def extract_inspect_modifications(primary_sequence: str) -> Tuple[str, List[ExtractedModification]]:
    """Split "M+16PEPSphosK" into the clean sequence and its modifications.

    >>> clean, mods = extract_inspect_modifications("M+16PEPSphosK")
    >>> clean, [(mod.residue, mod.residue_loc_in_peptide, mod.mass) for mod in mods]
    ('MPEPSK', [('M', 1, 16.0), ('S', 5, 79.9663)])
    """
    clean = []
    modifications = []
    position = 0
    while position < len(primary_sequence):
        char = primary_sequence[position]
        if is_residue_code(char):
            clean.append(char)
            position += 1
            continue

        residue = clean[-1] if clean else ""
        match = NUMERIC_MOD_PATTERN.match(primary_sequence, position)
        if match is not None:
            modifications.append(ExtractedModification(residue, len(clean), mass=float(match.group())))
            position = match.end()
            continue

        match = _MOD_NAME_PATTERN.match(primary_sequence, position)
        if match is not None:
            name = match.group()
            if name == PHOS_MOD_NAME:
                modification = ExtractedModification(residue, len(clean), mass=PHOS_MOD_MASS)
            else:
                modification = ExtractedModification(residue, len(clean), name=name)
            modifications.append(modification)
            position = match.end()
            continue

        if not char.isspace():
            modifications.append(ExtractedModification(residue, len(clean), symbol=char))
        position += 1

    clean_sequence = "".join(clean)
    return clean_sequence, anchor_leading_modifications(modifications, clean_sequence)


class InSpecTAdapter(EngineAdapter):
    """Adapter for InSpecT synopsis files."""

    search_engine_name = "InSpecT"
    results_file_format = ResultsFileFormat.INSPECT

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan",),
        "charge": ("Charge",),
        "peptide": ("Peptide", "Annotation"),
        "protein": ("Protein",),
        "precursor_mz": ("PrecursorMZ",),
        "mass_error_da": ("DelM",),
        "mass_error_ppm": ("DelM_PPM",),
        "precursor_error": ("PrecursorError",),
        "result_id": ("ResultID",),
    }
    SCORE_COLUMNS = ("MQScore", "TotalPRMScore", "MedianPRMScore", "FractionY", "FractionB",
                     "Intensity", "NTT", "PValue", "FScore", "DeltaScore", "DeltaScoreOther",
                     "DeltaNormMQScore", "DeltaNormTotalPRMScore", "RankTotalPRMScore", "RankFScore")

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        row.result_id = parse_int(self.get_value(record, columns, "result_id")) or 0
        if row.mass_error_da is None:
            precursor_error = self.get_float(record, columns, "precursor_error")
            if precursor_error is not None:
                # InSpecT reports theoretical minus observed
                row.mass_error_da = -precursor_error

        flanked = split_flanked_peptide(replace_terminus_symbols(row.peptide))
        if flanked is not None:
            row.prefix_residues, row.peptide, row.suffix_residues = flanked
        row.clean_sequence, row.modifications = extract_inspect_modifications(row.peptide)
