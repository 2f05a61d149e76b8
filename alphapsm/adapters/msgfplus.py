"""MS-GF+ tab-delimited results (``.tsv`` from MzidToTsvConverter).

Modifications are either numeric (``+15.995``, static mods included) or
display symbols when the results were written with a Mods.txt symbol
table. Flanking residues are either part of the peptide (``K.PEPTIDE.A``)
or only available from the protein name, e.g.
``sp|P02769|ALBU_BOVIN(pre=K,post=A)``.
"""

from typing import Dict, List, Tuple

from .base import (
    NUMERIC_MOD_PATTERN,
    EngineAdapter,
    RawPsmRow,
    ResultsFileFormat,
    extract_numeric_modifications,
    split_flanked_peptide,
    split_pre_post_residues,
)


class MSGFPlusAdapter(EngineAdapter):
    """Adapter for MS-GF+ results."""

    search_engine_name = "MS-GF+"
    results_file_format = ResultsFileFormat.MSGFPLUS

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("ScanNum", "Scan"),
        "charge": ("Charge",),
        "peptide": ("Peptide",),
        "protein": ("Protein",),
        "precursor_mz": ("Precursor", "PrecursorMZ"),
        "mass_error_ppm": ("PrecursorError(ppm)",),
        "mass_error_da": ("PrecursorError(Da)",),
    }
    SCORE_COLUMNS = ("IsotopeError", "DeNovoScore", "MSGFScore", "SpecEValue", "EValue",
                     "QValue", "PepQValue")

    def parse_proteins(self, text: str) -> List[str]:
        if not text:
            return []
        proteins = []
        for protein in text.split(';'):
            name, _, _ = split_pre_post_residues(protein.strip())
            if name:
                proteins.append(name)
        return proteins

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        flanked = split_flanked_peptide(row.peptide)
        if flanked is not None:
            prefix, primary_sequence, suffix = flanked
        else:
            primary_sequence = row.peptide
            protein = self.get_value(record, columns, "protein").split(';')[0]
            _, prefix, suffix = split_pre_post_residues(protein)

        row.prefix_residues = prefix or ""
        row.suffix_residues = suffix or ""
        row.peptide = primary_sequence

        if NUMERIC_MOD_PATTERN.search(primary_sequence) is None:
            # Symbol notation: the annotator reads the symbols
            return

        row.clean_sequence, row.modifications = extract_numeric_modifications(primary_sequence)
        row.static_residue_mods_reported = True
