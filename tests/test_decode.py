"""
Tests for row decoding.
"""

import pytest

from rvtools_inventory.models.inventory import Disk
from rvtools_inventory.store.decode import (
    DISK_FIELDS,
    as_bool,
    as_float,
    as_int,
    as_str,
    decode_host,
    decode_list,
    decode_string_list,
    decode_vm,
    rows_as_dicts,
)


class TestCoercers:
    """Tests for the scalar coercers."""

    @pytest.mark.parametrize("value,expected", [("a", "a"), (None, ""), (3, "3"), ([1], "")])
    def test_as_str(self, value, expected):
        """Test strings pass through and unusable values become empty."""
        assert as_str(value) == expected

    @pytest.mark.parametrize(
        "value,expected", [(5, 5), (2.9, 2), (" 42 ", 42), ("4.0", 4), ("x", 0), (None, 0)]
    )
    def test_as_int(self, value, expected):
        """Test numeric strings parse and everything else defaults to 0."""
        assert as_int(value) == expected

    def test_as_float(self):
        """Test float coercion defaults to 0.0."""
        assert as_float(512) == 512.0
        assert as_float("1.5") == 1.5
        assert as_float(None) == 0.0

    @pytest.mark.parametrize(
        "value,expected",
        [(True, True), ("true", True), ("Yes", True), (1, True), ("false", False), (None, False)],
    )
    def test_as_bool(self, value, expected):
        """Test truthy spellings decode to True."""
        assert as_bool(value) is expected


class TestDecodeList:
    """Tests for list-of-struct decoding."""

    def test_none_is_empty(self):
        """Test NULL decodes to an empty list."""
        assert decode_list(None, DISK_FIELDS, Disk) == []

    def test_non_list_rejected(self):
        """Test a scalar where a list is expected is an error."""
        with pytest.raises(TypeError):
            decode_list("disk", DISK_FIELDS, Disk)

    def test_non_struct_elements_skipped(self):
        """Test elements that are not structs are dropped."""
        disks = decode_list([{"key": "2000", "capacity": 10}, None, 5], DISK_FIELDS, Disk)

        assert disks == [Disk(key="2000", capacity=10)]

    def test_string_list_drops_empty(self):
        """Test empty and NULL names are removed."""
        assert decode_string_list(["a", None, "", "b"]) == ["a", "b"]


class TestDecodeRecords:
    """Tests for record decoders."""

    def test_vm_defaults(self):
        """Test a sparse row decodes with defaults and empty collections."""
        vm = decode_vm({"id": "vm-1", "name": "a", "cpu_count": None})

        assert vm.id == "vm-1"
        assert vm.cpu_count == 0
        assert vm.disks == []
        assert vm.nics == []
        assert vm.concerns == []

    def test_vm_nested(self):
        """Test nested lists decode into records."""
        vm = decode_vm(
            {
                "id": "vm-1",
                "name": "a",
                "concerns": [{"id": "c", "label": "L", "category": "Warning"}],
                "networks": ["VM Network", None],
            }
        )

        assert vm.concerns[0].category == "Warning"
        assert vm.concerns[0].assessment == ""
        assert vm.networks == ["VM Network"]

    def test_host(self):
        """Test host decoding."""
        host = decode_host({"id": "host-1", "cpu_cores": 24, "model": "N/A", "vendor": "HPE"})

        assert host.cpu_cores == 24
        assert host.vendor == "HPE"

    def test_rows_as_dicts(self):
        """Test rows are keyed by cursor description names."""
        rows = rows_as_dicts([("id",), ("count",)], [("a", 1), ("b", 2)])

        assert rows == [{"id": "a", "count": 1}, {"id": "b", "count": 2}]
