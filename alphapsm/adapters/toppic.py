"""MSAlign and TopPIC (top-down) results.

Modifications follow the residue, or the parenthesised group of residues,
they apply to, in square brackets. The bracket holds a mass or a name, and
a group marks an ambiguous placement::

    A.(ST)[79.97]PEPTIDEM[15.99]K.L          MSAlign
    M.(A)[Acetyl]SKGEEL(F)[Oxidation;+1.01]TGV.V     TopPIC

Static mods declared in the search parameters are implied.
"""

import re
from typing import Dict, List, Tuple

from ..registry import parse_float
from .base import (
    EngineAdapter,
    ExtractedModification,
    RawPsmRow,
    ResultsFileFormat,
    anchor_leading_modifications,
    is_residue_code,
    split_flanked_peptide,
)

_BRACKET_ITEM_SEPARATOR = re.compile(r"[;,]")


def extract_bracket_modifications(primary_sequence: str) -> Tuple[str, List[ExtractedModification]]:
    """Split bracket notation into the clean sequence and modifications.

    Numeric brackets give a mass, anything else a name.

    >>> clean, mods = extract_bracket_modifications("(ST)[79.97]PEPM[Oxidation]K")
    >>> clean
    'STPEPMK'
    >>> [(mod.residue, mod.residue_loc_in_peptide, mod.end_residue_loc_in_peptide, mod.mass, mod.name)
    ...  for mod in mods]
    [('S', 1, 2, 79.97, ''), ('M', 6, None, None, 'Oxidation')]

    Raises
    ------
    ValueError
        If a bracket is not closed
    """
    clean = []
    modifications = []
    group_start = None
    last_group = None

    position = 0
    while position < len(primary_sequence):
        char = primary_sequence[position]

        if is_residue_code(char):
            clean.append(char)
            last_group = None
            position += 1
            continue

        if char == '(':
            group_start = len(clean) + 1
            position += 1
            continue

        if char == ')':
            if group_start is not None and len(clean) >= group_start:
                last_group = (group_start, len(clean))
            group_start = None
            position += 1
            continue

        if char == '[':
            bracket_end = primary_sequence.find(']', position)
            if bracket_end < 0:
                raise ValueError(f"Unmatched '[' in {primary_sequence}")

            if last_group is not None:
                start, end = last_group
            else:
                start = end = len(clean)

            residue = clean[start - 1] if start > 0 else ""
            for item in _BRACKET_ITEM_SEPARATOR.split(primary_sequence[position + 1:bracket_end]):
                item = item.strip()
                if not item:
                    continue
                mass = parse_float(item)
                modifications.append(ExtractedModification(
                    residue, start,
                    mass=mass,
                    name="" if mass is not None else item,
                    end_residue_loc_in_peptide=end if end > start else None,
                ))

            last_group = None
            position = bracket_end + 1
            continue

        last_group = None
        position += 1

    clean_sequence = "".join(clean)
    return clean_sequence, anchor_leading_modifications(modifications, clean_sequence)


class MSAlignAdapter(EngineAdapter):
    """Adapter for MSAlign results."""

    search_engine_name = "MSAlign"
    results_file_format = ResultsFileFormat.MSALIGN

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan(s)", "Scans", "Scan"),
        "charge": ("Charge",),
        "peptide": ("Peptide",),
        "protein": ("Protein_name", "Protein"),
        "precursor_mass": ("Precursor_mass", "Precursor mass"),
    }
    SCORE_COLUMNS = ("#matched_peaks", "#matched_fragment_ions", "#unexpected_modifications",
                     "P-value", "E-value", "FDR")

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        flanked = split_flanked_peptide(row.peptide)
        if flanked is not None:
            row.prefix_residues, row.peptide, row.suffix_residues = flanked
        row.clean_sequence, row.modifications = extract_bracket_modifications(row.peptide)


class TopPICAdapter(MSAlignAdapter):
    """Adapter for TopPIC PrSM results."""

    search_engine_name = "TopPIC"
    results_file_format = ResultsFileFormat.TOPPIC

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan(s)", "Scan"),
        "charge": ("Charge",),
        "peptide": ("Proteoform",),
        "protein": ("Protein accession", "Protein name"),
        "precursor_mass": ("Precursor mass",),
        "calculated_mass": ("Proteoform mass",),
    }
    SCORE_COLUMNS = ("#matched peaks", "#matched fragment ions", "#unexpected modifications",
                     "E-value", "Spectrum-level Q-value", "Proteoform-level Q-value")
