"""Common pieces of the search engine adapters.

An adapter reads one engine's tab-delimited result file and yields
RawPsmRow objects: the scan, charge, peptide, proteins, raw score text and
precursor information of each PSM, plus the modifications found in the
engine's notation. Resolving those modifications against the registry is
left to the SearchResultAnnotator.

Column names are matched case-insensitively against a list of synonyms per
field, so the same adapter reads files written by different engine versions.
"""

import csv
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

from ..registry import parse_float

logger = logging.getLogger(__name__)

# Numeric mass shifts such as +15.995 or -17.03
NUMERIC_MOD_PATTERN = re.compile(r"[+-]\d*\.?\d+")

# Single-character flanks; numeric mods contain periods too
_FLANKED_PEPTIDE = re.compile(r"^([A-Z_\-]?)\.(.+)\.([A-Z_\-]?)$")

# Protein names in MS-GF+ results end with "(pre=K,post=A)"
_PRE_POST_PATTERN = re.compile(r"\(pre=(?P<pre>[^,]*),post=(?P<post>[^)]*)\)\s*$")


class ResultsFileFormat(Enum):
    """Search engines with an adapter."""
    SEQUEST = "sequest"
    MSGFPLUS = "msgfplus"
    MODA = "moda"
    MODPLUS = "modplus"
    MSALIGN = "msalign"
    TOPPIC = "toppic"
    MSFRAGGER = "msfragger"
    MAXQUANT = "maxquant"
    DIANN = "diann"
    MSPATHFINDER = "mspathfinder"
    XTANDEM = "xtandem"
    INSPECT = "inspect"

    @classmethod
    def from_name(cls, name: str) -> 'ResultsFileFormat':
        """Format for an engine name such as "MS-GF+", "DIA-NN" or "X!Tandem".

        Raises
        ------
        ValueError
            If the name is not a supported engine
        """
        key = name.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        key = key.replace("!", "").replace("+", "plus")
        for results_format in cls:
            if results_format.value == key:
                return results_format
        supported = ", ".join(results_format.value for results_format in cls)
        raise ValueError(f"Unknown search engine: {name}. Supported: {supported}")


class ExtractedModification(NamedTuple):
    """A modification as written by the search engine, not yet resolved.

    Exactly one of symbol, mass or name identifies the modification.
    Positions are 1-based; an ambiguous placement spans
    residue_loc_in_peptide to end_residue_loc_in_peptide.
    """
    residue: str
    residue_loc_in_peptide: int
    symbol: Optional[str] = None
    mass: Optional[float] = None
    name: str = ""
    end_residue_loc_in_peptide: Optional[int] = None


@dataclass
class RawPsmRow:
    """One PSM as read from a search engine result file.

    When both flanks are set, ``peptide`` is the primary sequence without
    them. ``modifications`` is None when the peptide uses display symbols that
    the annotator should extract itself; adapters for other notations
    fill it (and ``clean_sequence``) in.
    """

    peptide: str
    scan: int = 0
    charge: int = 0
    proteins: List[str] = field(default_factory=list)
    scores: Dict[str, str] = field(default_factory=dict)

    # Precursor; any one of these is enough to compute the mass error
    precursor_mz: Optional[float] = None
    precursor_mass: Optional[float] = None
    parent_ion_mh: Optional[float] = None
    mass_error_da: Optional[float] = None
    mass_error_ppm: Optional[float] = None

    # Theoretical mass according to the search engine
    calculated_mass: Optional[float] = None

    clean_sequence: Optional[str] = None
    prefix_residues: Optional[str] = None
    suffix_residues: Optional[str] = None
    modifications: Optional[List[ExtractedModification]] = None
    static_residue_mods_reported: bool = False
    result_id: int = 0


# =============================================================================
# Notation parsers shared by several engines
# =============================================================================

def is_residue_code(char: str) -> bool:
    return 'A' <= char <= 'Z'


def anchor_leading_modifications(modifications: List[ExtractedModification],
                                 clean_sequence: str) -> List[ExtractedModification]:
    """Move mods written before the first residue onto residue 1."""
    if not clean_sequence:
        return [mod for mod in modifications if mod.residue_loc_in_peptide > 0]
    return [
        mod._replace(residue=clean_sequence[0], residue_loc_in_peptide=1)
        if mod.residue_loc_in_peptide == 0 else mod
        for mod in modifications
    ]


def extract_symbol_modifications(primary_sequence: str) -> Tuple[str, List[ExtractedModification]]:
    """Split "M*PEPT#IDE" into the clean sequence and symbol modifications.

    A symbol modifies the residue before it; symbols before the first
    residue modify residue 1.

    >>> clean, mods = extract_symbol_modifications("M*PEPT#IDE")
    >>> clean, [(mod.residue, mod.residue_loc_in_peptide, mod.symbol) for mod in mods]
    ('MPEPTIDE', [('M', 1, '*'), ('T', 5, '#')])
    """
    clean = []
    modifications = []
    for char in primary_sequence:
        if is_residue_code(char):
            clean.append(char)
        elif not char.isspace():
            residue = clean[-1] if clean else ""
            modifications.append(ExtractedModification(residue, len(clean), symbol=char))
    clean_sequence = "".join(clean)
    return clean_sequence, anchor_leading_modifications(modifications, clean_sequence)


def extract_numeric_modifications(primary_sequence: str) -> Tuple[str, List[ExtractedModification]]:
    """Split "+42.011M+15.995PEPTIDE" into the clean sequence and mass shifts.

    >>> clean, mods = extract_numeric_modifications("+42.011M+15.995PEPTIDE")
    >>> clean, [(mod.residue_loc_in_peptide, mod.mass) for mod in mods]
    ('MPEPTIDE', [(1, 42.011), (1, 15.995)])
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

        match = NUMERIC_MOD_PATTERN.match(primary_sequence, position)
        if match is None:
            position += 1
            continue

        residue = clean[-1] if clean else ""
        modifications.append(ExtractedModification(residue, len(clean), mass=float(match.group())))
        position = match.end()

    clean_sequence = "".join(clean)
    return clean_sequence, anchor_leading_modifications(modifications, clean_sequence)


def split_pre_post_residues(protein: str) -> Tuple[str, Optional[str], Optional[str]]:
    """Remove a "(pre=K,post=A)" suffix from a protein name.

    >>> split_pre_post_residues("sp|P02769|ALBU_BOVIN(pre=K,post=A)")
    ('sp|P02769|ALBU_BOVIN', 'K', 'A')
    """
    match = _PRE_POST_PATTERN.search(protein)
    if match is None:
        return protein, None, None
    return protein[:match.start()], match.group("pre"), match.group("post")


def split_flanked_peptide(peptide: str) -> Optional[Tuple[str, str, str]]:
    """(prefix, primary sequence, suffix) of "K.M+15.995PEPTIDE.G"; None without flanks.

    Unlike split_prefix_and_suffix, periods inside numeric mods are kept.

    >>> split_flanked_peptide("K.M+15.995PEPTIDE.G")
    ('K', 'M+15.995PEPTIDE', 'G')
    """
    match = _FLANKED_PEPTIDE.match(peptide)
    if match is None:
        return None
    return match.group(1), match.group(2), match.group(3)


def parse_int(text: Optional[str]) -> Optional[int]:
    """Integer value of text such as "3" or "3.0"; None if not numeric."""
    value = parse_float(text)
    if value is None:
        return None
    return int(value)


# =============================================================================
# Adapter base class
# =============================================================================

class EngineAdapter:
    """Read one search engine's tab-delimited results.

    Subclasses set ``COLUMN_SYNONYMS`` (field name -> accepted headers),
    ``SCORE_COLUMNS`` (headers copied into the score map) and override
    extract_modifications for their notation.
    """

    search_engine_name = ""
    results_file_format: Optional[ResultsFileFormat] = None

    COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
        "scan": ("Scan", "ScanNum", "Scan Number"),
        "charge": ("Charge", "ChargeState"),
        "peptide": ("Peptide", "Sequence"),
        "protein": ("Protein", "Proteins", "Reference"),
    }
    SCORE_COLUMNS: Tuple[str, ...] = ()
    PROTEIN_SEPARATOR: Optional[str] = None

    # True when the peptide notation includes the static (fixed) mods
    static_residue_mods_reported = False

    def read_rows(self, file_path: Union[str, Path]) -> Iterator[RawPsmRow]:
        """Yield one RawPsmRow per data line.

        Lines that cannot be parsed are logged and skipped.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        ValueError
            If the header has no peptide column
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Results file not found: {file_path}")

        rows_read = 0
        with open(file_path, newline='') as f:
            reader = csv.DictReader(f, delimiter='\t')
            columns = self.map_columns(reader.fieldnames or [])
            if "peptide" not in columns:
                raise ValueError(f"No peptide column found in {file_path.name} "
                                 f"(expected one of {', '.join(self.COLUMN_SYNONYMS['peptide'])})")

            for line_number, record in enumerate(reader, start=2):
                try:
                    row = self.parse_record(record, columns)
                except ValueError as error:
                    logger.warning(f"Skipping line {line_number} of {file_path.name}: {error}")
                    continue
                if row is None:
                    continue
                rows_read += 1
                yield row

        logger.info(f"Read {rows_read} PSMs from {file_path.name}")

    def map_columns(self, header: List[str]) -> Dict[str, str]:
        """Map field names (and score names) to the headers present in the file."""
        by_lowercase = {name.strip().lower(): name for name in header if name}
        columns = {}
        for field_name, synonyms in self.COLUMN_SYNONYMS.items():
            for synonym in synonyms:
                if synonym.lower() in by_lowercase:
                    columns[field_name] = by_lowercase[synonym.lower()]
                    break
        for score_name in self.SCORE_COLUMNS:
            if score_name.lower() in by_lowercase:
                columns[f"score:{score_name}"] = by_lowercase[score_name.lower()]
        return columns

    @staticmethod
    def get_value(record: Dict[str, str], columns: Dict[str, str], field_name: str) -> str:
        header = columns.get(field_name)
        if header is None:
            return ""
        return (record.get(header) or "").strip()

    def get_float(self, record: Dict[str, str], columns: Dict[str, str], field_name: str) -> Optional[float]:
        return parse_float(self.get_value(record, columns, field_name))

    def parse_proteins(self, text: str) -> List[str]:
        if not text:
            return []
        if self.PROTEIN_SEPARATOR is None:
            return [text]
        return [protein.strip() for protein in text.split(self.PROTEIN_SEPARATOR) if protein.strip()]

    def parse_record(self, record: Dict[str, str], columns: Dict[str, str]) -> Optional[RawPsmRow]:
        """Convert one DictReader record; None to skip it (e.g. an empty peptide)."""
        peptide = self.get_value(record, columns, "peptide")
        if not peptide:
            return None

        row = RawPsmRow(
            peptide=peptide,
            scan=parse_int(self.get_value(record, columns, "scan").partition(' ')[0]) or 0,
            charge=parse_int(self.get_value(record, columns, "charge")) or 0,
            proteins=self.parse_proteins(self.get_value(record, columns, "protein")),
            precursor_mz=self.get_float(record, columns, "precursor_mz"),
            precursor_mass=self.get_float(record, columns, "precursor_mass"),
            parent_ion_mh=self.get_float(record, columns, "parent_ion_mh"),
            mass_error_da=self.get_float(record, columns, "mass_error_da"),
            mass_error_ppm=self.get_float(record, columns, "mass_error_ppm"),
            calculated_mass=self.get_float(record, columns, "calculated_mass"),
            static_residue_mods_reported=self.static_residue_mods_reported,
        )

        if "prefix" in columns and "suffix" in columns:
            row.prefix_residues = self.get_value(record, columns, "prefix")
            row.suffix_residues = self.get_value(record, columns, "suffix")

        for score_name in self.SCORE_COLUMNS:
            header = columns.get(f"score:{score_name}")
            if header is not None:
                row.scores[score_name] = (record.get(header) or "").strip()

        self.extract_modifications(row, record, columns)
        return row

    def extract_modifications(self, row: RawPsmRow, record: Dict[str, str], columns: Dict[str, str]) -> None:
        """Fill in the row's clean sequence and modifications.

        The default leaves them unset, so the annotator reads display
        symbols from the peptide.
        """
