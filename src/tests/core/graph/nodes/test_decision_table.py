"""Tests for decision table data, validation and import/export."""

import json

import pytest

from workflowgraph.core.graph.nodes import decision_table as dt
from workflowgraph.core.graph.nodes.decision_table import (
    Column,
    DecisionTableData,
    DecisionTableManager,
    DecisionTableNode,
    TableRow,
    generate_output_edge_values,
    validate_decision_table_data,
)
from workflowgraph.core.ids import IdGenerator


def make_table(rows) -> DecisionTableData:
    return DecisionTableData(
        input_columns=[Column(id="in", name="Amount")],
        decision_columns=[Column(id="dec", name="Band")],
        output_columns=[Column(id="out", name="Route")],
        rows=[TableRow(id=f"r{i}", values=values) for i, values in enumerate(rows)],
    )


@pytest.fixture
def manager() -> DecisionTableManager:
    """Fixture providing a manager over a default table."""
    return DecisionTableManager(DecisionTableNode(id="dt_1", name="Routing"), IdGenerator())


class TestDefaultTable:
    """Test the table a new node starts with."""

    def test_default_columns(self):
        """Test one column of each kind and one row."""
        data = DecisionTableNode(id="dt_1").table_data
        assert [c.id for c in data.input_columns] == ["input1"]
        assert [c.id for c in data.output_columns] == ["output1"]
        assert [c.id for c in data.decision_columns] == ["decision1"]
        assert [r.id for r in data.rows] == ["row1"]

    def test_default_table_is_valid(self):
        """Test the default table passes validation."""
        assert validate_decision_table_data(DecisionTableNode(id="dt_1").table_data).is_valid


class TestValidation:
    """Test table shape rules."""

    def test_missing_decision_and_output_columns(self):
        """Test both column groups are required."""
        result = validate_decision_table_data(DecisionTableData(rows=[TableRow(id="r1")]))
        assert not result.is_valid
        assert dt.MISSING_DECISION_COLUMNS in result.errors
        assert dt.MISSING_OUTPUT_COLUMNS in result.errors

    def test_duplicate_decision_rows(self):
        """Test identical decision values are reported with their indices."""
        data = make_table([
            {"in": "1", "dec": "low", "out": "a"},
            {"in": "2", "dec": "high", "out": "b"},
            {"in": "3", "dec": "low", "out": "c"},
        ])
        result = validate_decision_table_data(data)
        assert dt.DUPLICATE_DECISION_ROWS in result.errors
        assert result.duplicate_row_indices == [0, 2]

    def test_input_columns_do_not_count_for_duplicates(self):
        """Test rows differing only in inputs are still duplicates."""
        data = make_table([{"in": "1", "dec": "x"}, {"in": "2", "dec": "x"}])
        assert not validate_decision_table_data(data).is_valid

    def test_distinct_rows_are_valid(self):
        """Test distinct decision values pass."""
        data = make_table([{"dec": "x", "out": "a"}, {"dec": "y", "out": "a"}])
        assert validate_decision_table_data(data).is_valid

    def test_empty_rows_warning(self):
        """Test a table without rows only warns."""
        result = validate_decision_table_data(make_table([]))
        assert result.is_valid
        assert result.warnings == [dt.EMPTY_ROWS]

    def test_duplicate_ids(self):
        """Test repeated column and row ids are errors."""
        data = make_table([{"dec": "x"}, {"dec": "y"}])
        data.output_columns.append(Column(id="in"))
        data.rows[1].id = data.rows[0].id
        result = validate_decision_table_data(data)
        assert dt.DUPLICATE_COLUMN_IDS in result.errors
        assert dt.DUPLICATE_ROW_IDS in result.errors

    def test_generated_edge_values(self):
        """Test output values are unique, non-empty, in first-seen order."""
        data = make_table([
            {"dec": "1", "out": "approve"},
            {"dec": "2", "out": ""},
            {"dec": "3", "out": "reject"},
            {"dec": "4", "out": "approve"},
        ])
        assert generate_output_edge_values(data) == ["approve", "reject"]


class TestDecisionTableManager:
    """Test editing a table through the manager."""

    def test_add_columns_backfill_rows(self, manager: DecisionTableManager):
        """Test new columns get an empty cell in every row."""
        column = manager.add_decision_column("Region")
        assert column.id == "decision_1"
        assert manager.get_cell_value("row1", column.id) == ""

    def test_remove_column_drops_cells(self, manager: DecisionTableManager):
        """Test removing a column removes its cells."""
        assert manager.remove_column("input1")
        assert "input1" not in manager.table_data.rows[0].values
        assert not manager.remove_column("input1")

    def test_rows_and_cells(self, manager: DecisionTableManager):
        """Test adding rows and editing cells."""
        row = manager.add_row({"decision1": "gold", "output1": "fast"})
        assert row.id == "row_1"
        assert row.values["input1"] == ""
        assert manager.update_cell_value(row.id, "output1", "slow")
        assert manager.get_cell_value(row.id, "output1") == "slow"
        assert not manager.update_cell_value("missing", "output1", "x")
        assert manager.remove_row(row.id)
        assert manager.get_cell_value(row.id, "output1") is None

    def test_set_table_data_rejects_invalid(self, manager: DecisionTableManager):
        """Test invalid data is not applied."""
        before = manager.table_data
        result = manager.set_table_data(DecisionTableData())
        assert not result.is_valid
        assert manager.table_data is before

    def test_validate_warns_on_blank_name(self):
        """Test the node name check."""
        manager = DecisionTableManager(DecisionTableNode(id="dt_1", name=" "))
        assert "Decision table node should have a name" in manager.validate().warnings

    def test_import_csv(self, manager: DecisionTableManager):
        """Test the last column is output and the one before it decision."""
        content = 'Amount,Region,Band,Route\n100,"North, East",low,approve\n900,South,high,review\n'
        result = manager.import_from_csv(content)
        assert result.success
        data = manager.table_data
        assert [c.name for c in data.input_columns] == ["Amount", "Region"]
        assert [c.name for c in data.decision_columns] == ["Band"]
        assert [c.name for c in data.output_columns] == ["Route"]
        assert data.rows[0].values["input_2"] == "North, East"
        assert result.generated_edge_values == ["approve", "review"]

    def test_import_csv_without_header(self, manager: DecisionTableManager):
        """Test generated column names."""
        result = manager.import_from_csv("a,b\nc,d")
        assert result.success
        assert [c.name for c in manager.table_data.decision_columns] == ["Column 1"]
        assert len(manager.table_data.rows) == 2

    def test_import_csv_needs_two_columns(self, manager: DecisionTableManager):
        """Test a single-column CSV is refused."""
        result = manager.import_from_csv("Only\nx")
        assert not result.success
        assert result.errors == ["CSV must have at least 2 columns"]

    def test_import_csv_empty(self, manager: DecisionTableManager):
        """Test empty content is refused."""
        assert not manager.import_from_csv("  \n ").success

    def test_import_csv_duplicate_rows_keeps_table(self, manager: DecisionTableManager):
        """Test an invalid import leaves the current table in place."""
        before = manager.table_data
        result = manager.import_from_csv("Band,Route\nlow,a\nlow,b")
        assert not result.success
        assert dt.DUPLICATE_DECISION_ROWS in result.errors
        assert manager.table_data is before

    def test_failed_import_keeps_row_ids_unique(self, manager: DecisionTableManager):
        """Test a rejected import does not rewind the row counter."""
        first = manager.add_row({"decision1": "a"})
        second = manager.add_row({"decision1": "b"})
        assert not manager.import_from_csv("Band,Route\nlow,a\nlow,b").success

        third = manager.add_row({"decision1": "c"})
        ids = [r.id for r in manager.table_data.rows]
        assert [first.id, second.id, third.id] == ["row_1", "row_2", "row_3"]
        assert len(set(ids)) == len(ids)

    def test_ids_continue_after_import(self, manager: DecisionTableManager):
        """Test new columns and rows do not reuse imported ids."""
        assert manager.import_from_csv("Amount,Region,Band,Route\n1,N,low,a\n2,S,high,b").success
        assert manager.add_input_column("Channel").id == "input_3"
        assert manager.add_decision_column("Tier").id == "decision_2"
        assert manager.add_row().id == "row_3"

    def test_manager_over_existing_table(self):
        """Test ids already in the node's table are skipped."""
        data = DecisionTableData(
            input_columns=[Column(id="input_2", name="Amount")],
            decision_columns=[Column(id="decision_1", name="Band")],
            output_columns=[Column(id="output_1", name="Route")],
            rows=[TableRow(id="row_4", values={})],
        )
        manager = DecisionTableManager(DecisionTableNode(id="dt_1", table_data=data), IdGenerator())
        assert manager.add_input_column("Region").id == "input_3"
        assert manager.add_row().id == "row_5"

    def test_export_csv(self, manager: DecisionTableManager):
        """Test columns are exported inputs, decisions, outputs, all quoted."""
        manager.update_cell_value("row1", "decision1", "gold")
        assert manager.export_to_csv() == '"Input 1","Decision 1","Output 1"\n"","gold",""'

    def test_json_round_trip(self, manager: DecisionTableManager):
        """Test JSON export can be imported back."""
        manager.add_row({"decision1": "other", "output1": "x"})
        exported = manager.export_to_json()
        assert "decisionColumns" in json.loads(exported)

        other = DecisionTableManager(DecisionTableNode(id="dt_2"))
        result = other.import_from_json(exported)
        assert result.success
        assert other.table_data == manager.table_data

    def test_import_invalid_json(self, manager: DecisionTableManager):
        """Test malformed JSON is reported, not raised."""
        result = manager.import_from_json('{"rows": 5}')
        assert not result.success
        assert result.errors[0].startswith("Invalid JSON data structure")
