"""Tab-delimited synopsis files of annotated search results.

Scores are written from the text the search engine reported, so values
round-trip without float formatting drift.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .search_result import SearchResult

logger = logging.getLogger(__name__)

SYNOPSIS_COLUMNS = (
    "ResultID",
    "Scan",
    "Charge",
    "PrecursorMZ",
    "DelM",
    "DelM_PPM",
    "MH",
    "Peptide",
    "Protein",
    "NTT",
    "Missed_Cleavages",
    "Mod_Description",
    "Monoisotopic_Mass",
)


def _format_number(value: Optional[float], decimals: int) -> str:
    if value is None:
        return ""
    return f"{value:.{decimals}f}"


def synopsis_row(result: SearchResult, score_columns: Sequence[str] = ()) -> List[str]:
    """Values of one synopsis line, in SYNOPSIS_COLUMNS order followed by the scores."""
    row = [
        str(result.result_id),
        str(result.scan),
        str(result.charge),
        _format_number(result.precursor_mz, 6),
        _format_number(result.peptide_delta_mass, 5),
        _format_number(result.peptide_delta_mass_ppm, 4),
        _format_number(result.peptide_mh, 6),
        result.sequence_with_prefix_and_suffix(True),
        result.protein_name,
        str(int(result.peptide_cleavage_state)),
        str(result.number_of_missed_cleavages),
        result.peptide_mod_description,
        _format_number(result.peptide_monoisotopic_mass, 6),
    ]
    row.extend(result.get_score_text(name) for name in score_columns)
    return row


def write_synopsis_file(file_path: Union[str, Path], results: Iterable[SearchResult],
                        score_columns: Optional[Sequence[str]] = None) -> int:
    """Write results to a tab-delimited synopsis file.

    Parameters
    ----------
    file_path : str or Path
        Output file
    results : iterable of SearchResult
        Consumed once; may be a generator
    score_columns : sequence of str, optional
        Score names to append; missing scores are left blank

    Returns
    -------
    int
        Number of results written
    """
    file_path = Path(file_path)
    score_columns = list(score_columns or [])

    written = 0
    with open(file_path, 'w', newline='') as f:
        writer = csv.writer(f, delimiter='\t', lineterminator='\n')
        writer.writerow(list(SYNOPSIS_COLUMNS) + score_columns)
        for result in results:
            writer.writerow(synopsis_row(result, score_columns))
            written += 1

    logger.info(f"Wrote {written} results to {file_path.name}")
    return written
