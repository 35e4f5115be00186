"""Each strategy exercised on its own against the shared fixture grids."""

from htsresolver.cascade import (
    EmbeddedMultilineStrategy,
    ExactStrategy,
    HierarchicalParentStrategy,
    MatchStrategy,
    MergedCellReconstructionStrategy,
    NormalizedStrategy,
    default_cascade,
)
from htsresolver.codes import normalize
from htsresolver.config import ResolverSettings
from htsresolver.grid.model import CellGrid, Sheet
from tests.data.tariff_grids import (
    continuation_rate_grid,
    declared_merge_grid,
    hierarchical_grid,
    merged_rate_grid,
    multiline_grid,
    table_110_sheet,
)

SETTINGS = ResolverSettings()


def _search(strategy, grid: CellGrid, raw: str):
    sheet = grid.sheets[0]
    return strategy.search(sheet, normalize(raw), raw)


def test_default_cascade_order_and_confidences():
    cascade = default_cascade(SETTINGS)
    assert [s.kind for s in cascade] == [
        MatchStrategy.EXACT,
        MatchStrategy.NORMALIZED,
        MatchStrategy.HIERARCHICAL_PARENT,
        MatchStrategy.EMBEDDED_MULTILINE,
        MatchStrategy.MERGED_CELL_RECONSTRUCTION,
    ]
    assert [s.confidence for s in cascade] == [1.0, 0.95, 0.90, 0.90, 0.80]


def test_exact_matches_original_text_and_dotted_form():
    sheet = table_110_sheet()
    strategy = ExactStrategy(SETTINGS)

    by_dotted = strategy.search(sheet, normalize("430211.00"), "430211.00")
    assert len(by_dotted) == 1
    assert (by_dotted[0].row, by_dotted[0].column) == (3, 0)
    assert by_dotted[0].raw_rate == "Free"
    assert by_dotted[0].confidence == 1.0

    by_original = strategy.search(sheet, normalize("4302.19.15"), "4302.19.15")
    assert [(c.row, c.raw_rate) for c in by_original] == [(5, "2.7%")]


def test_exact_does_not_borrow_rate_from_next_coded_row():
    # 4302.19 is a heading without a rate; the 2.7% below belongs to 4302.19.15.
    assert ExactStrategy(SETTINGS).search(table_110_sheet(), normalize("4302.19"), "4302.19") == []


def test_exact_ignores_inputs_shorter_than_a_heading():
    assert ExactStrategy(SETTINGS).search(table_110_sheet(), normalize("00"), "00") == []


def test_normalized_requires_eight_digits():
    sheet = Sheet("Table 1", [["4302 11 00", "", "Of mink", "No.", "Free"], ["4302 19", "", "Other", "", "5%"]])
    strategy = NormalizedStrategy(SETTINGS)

    hits = strategy.search(sheet, normalize("4302.11.00"), "4302.11.00")
    assert [(c.row, c.strategy) for c in hits] == [(0, MatchStrategy.NORMALIZED)]
    assert strategy.search(sheet, normalize("4302.19"), "4302.19") == []


def test_normalized_ignores_cells_outside_code_columns():
    sheet = Sheet("Table 1", [["", "", "", "4302.11.00", "Free"]])
    assert NormalizedStrategy(SETTINGS).search(sheet, normalize("43021100"), "43021100") == []


def test_hierarchical_parent_finds_child_below_heading():
    hits = _search(HierarchicalParentStrategy(SETTINGS), hierarchical_grid(), "4302 11")
    assert len(hits) == 1
    assert hits[0].row == 3
    assert hits[0].raw_rate == "Free"
    assert hits[0].confidence == 0.90


def test_hierarchical_parent_stops_at_next_heading():
    sheet = Sheet(
        "Table 1",
        [
            ["4302", "", "Furskins", "", ""],
            ["4303", "", "Apparel of furskin", "", ""],
            ["430211", "", "Of mink", "No.", "Free"],
        ],
    )
    assert HierarchicalParentStrategy(SETTINGS).search(sheet, normalize("4302 11"), "4302 11") == []


def test_hierarchical_parent_scan_window_is_bounded():
    rows = [["4302", "", "Furskins", "", ""]] + [["", "", "filler", "", ""] for _ in range(5)]
    rows.append(["430211", "", "Of mink", "No.", "Free"])
    sheet = Sheet("Table 1", rows)
    narrow = ResolverSettings(parent_scan_rows=3)
    assert HierarchicalParentStrategy(narrow).search(sheet, normalize("4302 11"), "4302 11") == []
    assert HierarchicalParentStrategy(SETTINGS).search(sheet, normalize("4302 11"), "4302 11")


def test_embedded_multiline_matches_token_inside_cell():
    hits = _search(EmbeddedMultilineStrategy(SETTINGS), multiline_grid(), "4302.11.00")
    assert len(hits) == 1
    assert (hits[0].row, hits[0].column) == (1, 0)
    assert hits[0].raw_description == "Tanned or dressed furskins: Of mink"
    assert hits[0].strategy is MatchStrategy.EMBEDDED_MULTILINE


def test_embedded_multiline_skips_single_line_cells():
    assert _search(EmbeddedMultilineStrategy(SETTINGS), continuation_rate_grid(), "4302.11.00") == []


def test_direct_strategies_miss_merged_rate():
    grid = merged_rate_grid()
    for strategy in (ExactStrategy(SETTINGS), NormalizedStrategy(SETTINGS)):
        assert _search(strategy, grid, "4302.11.00") == []


def test_merge_reconstruction_recovers_rate_from_above():
    hits = _search(MergedCellReconstructionStrategy(SETTINGS), merged_rate_grid(), "4302.11.00")
    assert hits
    assert hits[0].row == 10
    assert hits[0].raw_rate == "Free"
    assert hits[0].confidence == 0.80


def test_merge_reconstruction_lookback_is_bounded():
    short = ResolverSettings(merge_lookback_rows=1)
    assert _search(MergedCellReconstructionStrategy(short), merged_rate_grid(), "4302.11.00") == []


def test_merge_reconstruction_uses_declared_merge_regions():
    short = ResolverSettings(merge_lookback_rows=1)
    hits = _search(MergedCellReconstructionStrategy(short), declared_merge_grid(), "8539.22.80")
    assert hits
    assert hits[0].row == 3
    assert hits[0].raw_rate == "3.5%"


def test_merge_reconstruction_reuses_logical_rows():
    strategy = MergedCellReconstructionStrategy(SETTINGS)
    sheet = merged_rate_grid().sheets[0]
    assert strategy.logical_rows(sheet) is strategy.logical_rows(sheet)
