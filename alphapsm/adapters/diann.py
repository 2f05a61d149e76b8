"""DIA-NN report.tsv results.

Modified sequences carry UniMod accessions after the modified residue;
N-terminal mods come first::

    (UniMod:1)AAM(UniMod:35)PEPC(UniMod:4)K

Fixed mods such as carbamidomethyl are written like variable ones.
"""

import re
from typing import Dict, List, Tuple

from .base import (
    EngineAdapter,
    ExtractedModification,
    RawPsmRow,
    ResultsFileFormat,
    anchor_leading_modifications,
    is_residue_code,
)

# UniMod accession -> (name, monoisotopic mass)
UNIMOD_MODIFICATIONS = {
    1: ("Acetyl", 42.010565),
    4: ("Carbamidomethyl", 57.021464),
    5: ("Carbamyl", 43.005814),
    7: ("Deamidated", 0.984016),
    21: ("Phospho", 79.966331),
    27: ("Glu->pyro-Glu", -18.010565),
    28: ("Gln->pyro-Glu", -17.026549),
    34: ("Methyl", 14.01565),
    35: ("Oxidation", 15.994915),
    36: ("Dimethyl", 28.0313),
    121: ("GG", 114.042927),
    214: ("iTRAQ4plex", 144.102063),
    259: ("Label:13C(6)15N(2)", 8.014199),
    267: ("Label:13C(6)15N(4)", 10.008269),
    737: ("TMT6plex", 229.162932),
}

_UNIMOD_TOKEN = re.compile(r"\(UniMod:(\d+)\)|\[UniMod:(\d+)\]", re.IGNORECASE)


def parse_unimod_sequence(modified_sequence: str) -> Tuple[str, List[ExtractedModification]]:
    """Clean sequence and modifications of a DIA-NN modified sequence.

    Unknown accessions are returned by name ("UniMod:999") without a mass.

    >>> clean, mods = parse_unimod_sequence("(UniMod:1)AM(UniMod:35)K")
    >>> clean, [(mod.residue, mod.residue_loc_in_peptide, mod.mass) for mod in mods]
    ('AMK', [('A', 1, 42.010565), ('M', 2, 15.994915)])
    """
    clean = []
    modifications = []
    position = 0
    while position < len(modified_sequence):
        match = _UNIMOD_TOKEN.match(modified_sequence, position)
        if match is not None:
            accession = int(match.group(1) or match.group(2))
            name, mass = UNIMOD_MODIFICATIONS.get(accession, (f"UniMod:{accession}", None))
            residue = clean[-1] if clean else ""
            modifications.append(ExtractedModification(residue, len(clean), mass=mass, name=name))
            position = match.end()
            continue

        char = modified_sequence[position]
        if is_residue_code(char):
            clean.append(char)
        position += 1

    clean_sequence = "".join(clean)
    return clean_sequence, anchor_leading_modifications(modifications, clean_sequence)


class DiannAdapter(EngineAdapter):
    """Adapter for DIA-NN reports."""

    search_engine_name = "DIA-NN"
    results_file_format = ResultsFileFormat.DIANN

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("MS2.Scan", "Scan"),
        "charge": ("Precursor.Charge", "Charge"),
        "peptide": ("Stripped.Sequence",),
        "modified_sequence": ("Modified.Sequence",),
        "protein": ("Protein.Ids", "Protein.Group"),
        "precursor_mz": ("Precursor.Mz",),
    }
    SCORE_COLUMNS = ("Q.Value", "PEP", "Global.Q.Value", "Protein.Q.Value", "PG.Q.Value",
                     "CScore", "RT", "Precursor.Quantity")
    PROTEIN_SEPARATOR = ';'
    static_residue_mods_reported = True

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        modified_sequence = self.get_value(record, columns, "modified_sequence")
        if not modified_sequence:
            row.clean_sequence = row.peptide
            row.modifications = []
            return
        row.clean_sequence, row.modifications = parse_unimod_sequence(modified_sequence)
