"""MSPathFinder (_IcTsv) results.

The sequence is unmodified; the Modifications column lists name and
position pairs, with position 0 for the N-terminus::

    Oxidation 7,Acetyl 0

Names are resolved by the annotator through the registry. Static mods are
implied.
"""

from typing import Dict, List, Tuple

from .base import EngineAdapter, ExtractedModification, RawPsmRow, ResultsFileFormat, parse_int


def parse_modification_list(text: str, clean_sequence: str) -> List[ExtractedModification]:
    """Parse "Oxidation 7,Acetyl 0".

    >>> mods = parse_modification_list("Oxidation 2,Acetyl 0", "AMK")
    >>> [(mod.residue, mod.residue_loc_in_peptide, mod.name) for mod in mods]
    [('M', 2, 'Oxidation'), ('A', 1, 'Acetyl')]

    Raises
    ------
    ValueError
        If an entry has no numeric position
    """
    modifications = []
    for entry in text.split(','):
        entry = entry.strip()
        if not entry:
            continue
        name, _, position_text = entry.rpartition(' ')
        position = parse_int(position_text)
        if not name or position is None:
            raise ValueError(f"Unrecognized modification '{entry}'")

        position = max(position, 1)
        residue = clean_sequence[position - 1] if position <= len(clean_sequence) else ""
        modifications.append(ExtractedModification(residue, position, name=name.strip()))
    return modifications


class MSPathFinderAdapter(EngineAdapter):
    """Adapter for MSPathFinder results."""

    search_engine_name = "MSPathFinder"
    results_file_format = ResultsFileFormat.MSPATHFINDER

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan",),
        "charge": ("Charge",),
        "peptide": ("Sequence",),
        "modifications": ("Modifications",),
        "prefix": ("Pre",),
        "suffix": ("Post",),
        "protein": ("ProteinName",),
        "calculated_mass": ("Mass",),
    }
    SCORE_COLUMNS = ("#MatchedFragments", "Probability", "SpecEValue", "EValue", "QValue", "PepQValue")

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        row.clean_sequence = row.peptide
        row.modifications = parse_modification_list(
            self.get_value(record, columns, "modifications"), row.clean_sequence)
