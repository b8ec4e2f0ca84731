"""Decision table nodes.

A decision table holds three groups of columns (input, decision, output)
and rows mapping column ids to cell values. This module provides:
1. The table data model and node kind
2. Table validation (column presence, duplicate decision rows, id uniqueness)
3. Output edge value generation
4. A manager for editing tables and moving them through CSV and JSON
"""

import csv
import io
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, ValidationError

from workflowgraph.core.graph.nodes.base.node import (
    NodeValidationResult,
    WorkflowBaseModel,
    WorkflowNode,
)
from workflowgraph.core.ids import IdGenerator
from workflowgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)

DataType = Literal["string", "number", "boolean", "date"]

MISSING_DECISION_COLUMNS = "Decision table must have at least one decision column"
MISSING_OUTPUT_COLUMNS = "Decision table must have at least one output column"
DUPLICATE_DECISION_ROWS = "Decision column values cannot be identical across rows"
DUPLICATE_COLUMN_IDS = "Column IDs must be unique"
DUPLICATE_ROW_IDS = "Row IDs must be unique"
EMPTY_ROWS = "Decision table has no data rows"


class Column(WorkflowBaseModel):
    id: str
    name: str = ""
    data_type: DataType = "string"


class TableRow(WorkflowBaseModel):
    id: str
    values: Dict[str, Any] = Field(default_factory=dict)


def default_table_data() -> "DecisionTableData":
    """One column of each kind and a single empty row."""
    return DecisionTableData(
        input_columns=[Column(id="input1", name="Input 1")],
        output_columns=[Column(id="output1", name="Output 1")],
        decision_columns=[Column(id="decision1", name="Decision 1")],
        rows=[TableRow(id="row1", values={"input1": "", "output1": "", "decision1": ""})],
    )


class DecisionTableData(WorkflowBaseModel):
    input_columns: List[Column] = Field(default_factory=list)
    output_columns: List[Column] = Field(default_factory=list)
    decision_columns: List[Column] = Field(default_factory=list)
    rows: List[TableRow] = Field(default_factory=list)

    def all_columns(self) -> List[Column]:
        """Columns in export order: inputs, decisions, outputs."""
        return [*self.input_columns, *self.decision_columns, *self.output_columns]


class DecisionTableNode(WorkflowNode):
    """A node whose outgoing edges are selected by a decision table."""
    type: Literal["decision_table"] = "decision_table"
    table_data: DecisionTableData = Field(default_factory=default_table_data)


class DecisionTableValidationResult(NodeValidationResult):
    duplicate_row_indices: List[int] = Field(default_factory=list)


class DecisionTableImportResult(WorkflowBaseModel):
    success: bool
    data: Optional[DecisionTableData] = None
    errors: List[str] = Field(default_factory=list)
    generated_edge_values: List[str] = Field(default_factory=list)


def _decision_key(row: TableRow, decision_column_ids: List[str]) -> str:
    parts = []
    for column_id in decision_column_ids:
        value = row.values.get(column_id)
        parts.append(json.dumps("" if value is None else value, sort_keys=True, default=str))
    return "|".join(parts)


def find_duplicate_decision_rows(data: DecisionTableData) -> List[int]:
    """Indices of rows whose decision values match another row exactly."""
    if len(data.rows) <= 1 or not data.decision_columns:
        return []

    decision_column_ids = [c.id for c in data.decision_columns]
    groups: Dict[str, List[int]] = {}
    for index, row in enumerate(data.rows):
        groups.setdefault(_decision_key(row, decision_column_ids), []).append(index)

    duplicates: List[int] = []
    for indices in groups.values():
        if len(indices) > 1:
            duplicates.extend(indices)
    return sorted(duplicates)


def validate_decision_table_data(data: DecisionTableData) -> DecisionTableValidationResult:
    """Check the shape of a decision table.

    Errors: no decision column, no output column, identical decision rows,
    repeated column ids, repeated row ids. Warning: no rows.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not data.decision_columns:
        errors.append(MISSING_DECISION_COLUMNS)
    if not data.output_columns:
        errors.append(MISSING_OUTPUT_COLUMNS)
    if not data.rows:
        warnings.append(EMPTY_ROWS)

    duplicate_rows = find_duplicate_decision_rows(data)
    if duplicate_rows:
        errors.append(DUPLICATE_DECISION_ROWS)

    column_ids = [c.id for c in (*data.input_columns, *data.output_columns, *data.decision_columns)]
    if len(set(column_ids)) != len(column_ids):
        errors.append(DUPLICATE_COLUMN_IDS)

    row_ids = [r.id for r in data.rows]
    if len(set(row_ids)) != len(row_ids):
        errors.append(DUPLICATE_ROW_IDS)

    return DecisionTableValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        duplicate_row_indices=duplicate_rows,
    )


def generate_output_edge_values(data: DecisionTableData) -> List[str]:
    """Unique non-empty output cell values, in first-seen order."""
    output_column_ids = [c.id for c in data.output_columns]
    seen: Dict[str, None] = {}
    for row in data.rows:
        for column_id in output_column_ids:
            value = row.values.get(column_id)
            if value is None or value == "":
                continue
            seen.setdefault(str(value), None)
    return list(seen)


class DecisionTableManager:
    """Edits the table of a single DecisionTableNode in place.

    Column and row ids come from the injected IdGenerator
    (``input_n``, ``decision_n``, ``output_n``, ``row_n``).
    """

    def __init__(self, node: DecisionTableNode, id_generator: Optional[IdGenerator] = None):
        self.node = node
        self.ids = id_generator or IdGenerator()
        self._observe(node.table_data)

    def _observe(self, data: DecisionTableData) -> None:
        self.ids.observe([c.id for c in data.all_columns()] + [r.id for r in data.rows])

    @property
    def table_data(self) -> DecisionTableData:
        return self.node.table_data

    def set_table_data(self, data: DecisionTableData) -> DecisionTableValidationResult:
        """Replace the table if the new data validates."""
        validation = validate_decision_table_data(data)
        if validation.is_valid:
            self.node.table_data = data
            self._observe(data)
        return validation

    def _add_column(self, group: List[Column], prefix: str, name: str, data_type: DataType) -> Column:
        column = Column(id=self.ids.next_id(prefix), name=name, data_type=data_type)
        group.append(column)
        for row in self.table_data.rows:
            row.values[column.id] = ""
        logger.debug(f"Decision table {self.node.id}: added {prefix} column {column.id}")
        return column

    def add_input_column(self, name: str, data_type: DataType = "string") -> Column:
        return self._add_column(self.table_data.input_columns, "input", name, data_type)

    def add_output_column(self, name: str, data_type: DataType = "string") -> Column:
        return self._add_column(self.table_data.output_columns, "output", name, data_type)

    def add_decision_column(self, name: str, data_type: DataType = "string") -> Column:
        return self._add_column(self.table_data.decision_columns, "decision", name, data_type)

    def remove_column(self, column_id: str) -> bool:
        data = self.table_data
        removed = False
        for group in (data.input_columns, data.output_columns, data.decision_columns):
            for column in list(group):
                if column.id == column_id:
                    group.remove(column)
                    removed = True
        if removed:
            for row in data.rows:
                row.values.pop(column_id, None)
        return removed

    def add_row(self, values: Optional[Dict[str, Any]] = None) -> TableRow:
        """Append a row with a cell for every column. Missing cells default to ''."""
        values = values or {}
        cells = {}
        for column in (*self.table_data.input_columns, *self.table_data.output_columns,
                       *self.table_data.decision_columns):
            value = values.get(column.id)
            cells[column.id] = "" if value is None else value
        row = TableRow(id=self.ids.next_id("row"), values=cells)
        self.table_data.rows.append(row)
        return row

    def remove_row(self, row_id: str) -> bool:
        rows = self.table_data.rows
        for index, row in enumerate(rows):
            if row.id == row_id:
                del rows[index]
                return True
        return False

    def _find_row(self, row_id: str) -> Optional[TableRow]:
        return next((r for r in self.table_data.rows if r.id == row_id), None)

    def update_cell_value(self, row_id: str, column_id: str, value: Any) -> bool:
        row = self._find_row(row_id)
        if row is None:
            return False
        row.values[column_id] = value
        return True

    def get_cell_value(self, row_id: str, column_id: str) -> Any:
        row = self._find_row(row_id)
        return None if row is None else row.values.get(column_id)

    def get_generated_edge_values(self) -> List[str]:
        return generate_output_edge_values(self.table_data)

    def import_from_csv(self, content: str, has_header: bool = True) -> DecisionTableImportResult:
        """Load a table from CSV text.

        The last column becomes the output column, the second to last the
        decision column, and the rest inputs. The table is only replaced
        when the imported data validates.

        Args:
            content: CSV text, quoted fields allowed
            has_header: Whether the first line holds column names

        Returns:
            Import outcome with the generated output edge values
        """
        lines = [line.strip() for line in content.strip().splitlines() if line.strip()]
        if not lines:
            return DecisionTableImportResult(success=False, errors=["CSV content is empty"])

        parsed = [[cell.strip() for cell in row] for row in csv.reader(lines, skipinitialspace=True)]

        if has_header:
            headers, body = parsed[0], parsed[1:]
        else:
            headers = [f"Column {i + 1}" for i in range(len(parsed[0]))]
            body = parsed

        if len(headers) < 2:
            return DecisionTableImportResult(
                success=False, errors=["CSV must have at least 2 columns"]
            )

        # Fresh numbering for the imported table; self.ids only moves on accept
        ids = IdGenerator()
        data = DecisionTableData()
        last = len(headers) - 1
        for index, header in enumerate(headers):
            if index == last:
                data.output_columns.append(Column(id=ids.next_id("output"), name=header))
            elif index == last - 1:
                data.decision_columns.append(Column(id=ids.next_id("decision"), name=header))
            else:
                data.input_columns.append(Column(id=ids.next_id("input"), name=header))

        columns = data.all_columns()
        for line in body:
            values = {column.id: cell for column, cell in zip(columns, line)}
            data.rows.append(TableRow(id=ids.next_id("row"), values=values))

        return self._accept(data)

    def import_from_json(self, content: str) -> DecisionTableImportResult:
        """Load a table from its JSON export."""
        try:
            data = DecisionTableData.model_validate_json(content)
        except ValidationError as e:
            logger.warning(f"Decision table {self.node.id}: invalid JSON import ({e.error_count()} errors)")
            return DecisionTableImportResult(
                success=False, errors=[f"Invalid JSON data structure: {e}"]
            )
        return self._accept(data)

    def _accept(self, data: DecisionTableData) -> DecisionTableImportResult:
        validation = validate_decision_table_data(data)
        if not validation.is_valid:
            return DecisionTableImportResult(success=False, errors=validation.errors)
        self.node.table_data = data
        self._observe(data)
        return DecisionTableImportResult(
            success=True,
            data=data,
            generated_edge_values=generate_output_edge_values(data),
        )

    def export_to_csv(self) -> str:
        """Quoted CSV with columns ordered inputs, decisions, outputs."""
        columns = self.table_data.all_columns()
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow([c.name for c in columns])
        for row in self.table_data.rows:
            writer.writerow([
                "" if row.values.get(c.id) is None else str(row.values.get(c.id))
                for c in columns
            ])
        return buffer.getvalue().rstrip("\n")

    def export_to_json(self) -> str:
        return self.table_data.model_dump_json(by_alias=True, indent=2)

    def validate(self) -> DecisionTableValidationResult:
        """Table checks plus a warning for a blank node name."""
        result = validate_decision_table_data(self.table_data)
        if not self.node.name.strip():
            result.warnings.insert(0, "Decision table node should have a name")
        return result
