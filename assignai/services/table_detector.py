"""
Heuristic table detection from positioned PDF text fragments.

Fragments are dicts {"text", "x", "y"} in page coordinates (y grows
downward, as PyMuPDF reports it). The detector is biased toward recall:
a paragraph mistaken for a table is harmless downstream, a dropped table
cannot be recovered.
"""
import re

# Fragments whose y values are within this many points share a row
ROW_Y_TOLERANCE = 5.0
# Rows may differ from the first row's column count by this much
COLUMN_DRIFT = 1
# Candidates shorter than this are discarded
MIN_TABLE_ROWS = 2

HEADER_WORDS = ('Total', 'Sum', 'Average', 'Mean', 'Company', 'Name', 'Rate', 'Value')

NUMERIC_PATTERN = re.compile(r'[$€£]|\d+(\.\d+)?%?')
DATE_PATTERN = re.compile(r'\b(19|20)\d{2}\b|Year|Date')
HEADER_PATTERN = re.compile('|'.join(HEADER_WORDS))


def group_rows(fragments, tolerance=ROW_Y_TOLERANCE, bounds=None):
    """Bucket fragments into visual rows, top to bottom.

    A fragment joins the current row when its y is within `tolerance` of
    the row's first y, which absorbs baseline jitter inside one line.
    Each returned row is sorted left to right. When `bounds`
    (x0, y0, x1, y1) is given, fragments outside it are ignored.
    """
    usable = []
    for fragment in fragments:
        text = (fragment.get('text') or '').strip()
        if not text:
            continue
        x, y = fragment['x'], fragment['y']
        if bounds is not None:
            x0, y0, x1, y1 = bounds
            if not (x0 <= x <= x1 and y0 <= y <= y1):
                continue
        usable.append({"text": text, "x": x, "y": y})

    rows = []
    anchor = None
    for fragment in sorted(usable, key=lambda f: f['y']):
        if rows and abs(fragment['y'] - anchor) <= tolerance:
            rows[-1].append(fragment)
        else:
            rows.append([fragment])
            anchor = fragment['y']

    return [sorted(row, key=lambda f: f['x']) for row in rows]


def is_table_row(cells):
    """True when any cell looks numeric, date-like, or like a header word."""
    for cell in cells:
        if NUMERIC_PATTERN.search(cell) or DATE_PATTERN.search(cell) or HEADER_PATTERN.search(cell):
            return True
    return False


def normalize_table(rows):
    """Pad every row with empty cells up to the widest row. Never truncates."""
    if not rows:
        return []
    width = max(len(row) for row in rows)
    return [list(row) + [''] * (width - len(row)) for row in rows]


def _close_table(tables, rows):
    if len(rows) >= MIN_TABLE_ROWS:
        tables.append({"rows": normalize_table(rows)})


def detect_tables(fragments, bounds=None, tolerance=ROW_Y_TOLERANCE):
    """Find table-like runs of rows on one page.

    Returns a list of {"rows": [[cell, ...], ...]} with rectangular rows.
    """
    tables = []
    current = []
    column_count = 0

    for row in group_rows(fragments, tolerance=tolerance, bounds=bounds):
        cells = [fragment['text'] for fragment in row]

        if not is_table_row(cells):
            _close_table(tables, current)
            current = []
            continue

        if not current:
            current = [cells]
            column_count = len(cells)
        elif abs(len(cells) - column_count) <= COLUMN_DRIFT:
            current.append(cells)
        else:
            # Column count drifted too far: this row starts a new candidate
            _close_table(tables, current)
            current = [cells]
            column_count = len(cells)

    _close_table(tables, current)
    return tables
