"""Unit tests for synopsis file output."""

from alphapsm.adapters.base import RawPsmRow
from alphapsm.output import SYNOPSIS_COLUMNS, synopsis_row, write_synopsis_file
from alphapsm.search_result import SearchResult


class TestSynopsisRow:
    """Test formatting of one result."""

    def test_annotated_result(self, annotator):
        """Test number formatting and derived columns."""
        peptide_mass = annotator.calculator.compute_sequence_mass("PEPTIDEK")
        row = RawPsmRow(peptide="R.PEPTIDEK.A", scan=42, charge=2, proteins=["ProtA"],
                        precursor_mass=peptide_mass + 0.005, scores={"XCorr": "3.4567890"})
        result = annotator.annotate(row)
        values = synopsis_row(result, ["XCorr", "DelCn"])

        assert len(values) == len(SYNOPSIS_COLUMNS) + 2
        by_column = dict(zip(SYNOPSIS_COLUMNS, values))
        assert by_column["ResultID"] == "1"
        assert by_column["Scan"] == "42"
        assert by_column["Peptide"] == "R.PEPTIDEK.A"
        assert by_column["Protein"] == "ProtA"
        assert by_column["NTT"] == "2"
        assert by_column["Missed_Cleavages"] == "0"
        assert by_column["DelM"] == "0.00500"
        assert by_column["Monoisotopic_Mass"] == f"{peptide_mass:.6f}"
        assert len(by_column["PrecursorMZ"].split('.')[1]) == 6

        # Score text is written as reported; missing scores are blank
        assert values[-2:] == ["3.4567890", ""]

    def test_missing_values_blank(self):
        """Test an empty result writes blanks for unknown numbers."""
        values = synopsis_row(SearchResult())
        by_column = dict(zip(SYNOPSIS_COLUMNS, values))
        assert by_column["PrecursorMZ"] == ""
        assert by_column["DelM"] == ""
        assert by_column["DelM_PPM"] == ""
        assert by_column["Peptide"] == ""


class TestWriteSynopsisFile:
    """Test writing synopsis files."""

    def test_write(self, annotator, tmp_path):
        """Test header, rows and the returned count."""
        rows = [RawPsmRow(peptide="K.PEPTIDE.A", scan=scan, scores={"XCorr": "2.5"}) for scan in (10, 11)]
        file_path = tmp_path / "results_syn.txt"
        written = write_synopsis_file(file_path, annotator.annotate_rows(rows), ["XCorr"])

        assert written == 2
        lines = file_path.read_text().split('\n')
        assert lines[0].split('\t') == list(SYNOPSIS_COLUMNS) + ["XCorr"]
        assert lines[1].split('\t')[1] == "10"
        assert lines[2].split('\t')[-1] == "2.5"
        assert lines[3] == ""

    def test_empty(self, tmp_path):
        """Test a header-only file."""
        file_path = tmp_path / "empty_syn.txt"
        assert write_synopsis_file(file_path, []) == 0
        assert file_path.read_text() == "\t".join(SYNOPSIS_COLUMNS) + "\n"
