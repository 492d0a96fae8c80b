import io
from typing import Iterable, Sequence

from docx import Document
from docx.shared import Pt


def add_table(doc: Document, headers: Sequence[str], rows: Iterable[Sequence[str]], style: str = "Table Grid"):
    """
    Append a table with a bold header row to a python-docx Document.
    """
    table = doc.add_table(rows=1, cols=len(headers))
    table.style = style

    for cell, header in zip(table.rows[0].cells, headers):
        cell.text = ""
        run = cell.paragraphs[0].add_run(str(header))
        run.bold = True

    for values in rows:
        cells = table.add_row().cells
        for cell, value in zip(cells, values):
            cell.text = "" if value is None else str(value)

    return table


def add_label_line(doc: Document, label: str, value: str, size: int = 11) -> None:
    p = doc.add_paragraph()
    label_run = p.add_run(f"{label}: ")
    label_run.bold = True
    label_run.font.size = Pt(size)
    value_run = p.add_run(value)
    value_run.font.size = Pt(size)


def document_bytes(doc: Document) -> bytes:
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()
