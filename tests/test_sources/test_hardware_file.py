"""Tests for the hardware description parser."""

import json

import pytest

from hw2nixcfg.errors import InputValidationError
from hw2nixcfg.sources.hardware_file import load_hardware, parse_hardware

DISK = "/dev/disk/by-id/mmc-SU08G_0x21a906b7"


def _doc(partitions, encryption=None, **extra):
    data = {"disks": [{"device": DISK, "partitions": partitions}], **extra}
    if encryption is not None:
        data["encryption"] = encryption
    return json.dumps(data)


class TestParsePartitions:
    def test_device_derived_from_number(self):
        hw = parse_hardware(_doc([{"id": "data_1", "number": 2}]), "hw")
        assert hw.partitions[0].block_device_path == f"{DISK}-part2"

    def test_explicit_device_wins(self):
        hw = parse_hardware(
            _doc([{"id": "data_1", "number": 2, "device": "/dev/disk/by-partlabel/data"}]),
            "hw",
        )
        assert hw.partitions[0].block_device_path == "/dev/disk/by-partlabel/data"

    def test_optional_fields(self):
        hw = parse_hardware(_doc([{
            "id": "system", "number": 4, "fs_type": "ext4", "label": "sys",
            "mount_point": "/", "root": True, "encrypted": True,
        }]), "hw")
        p = hw.partitions[0]
        assert p.fs_type == "ext4"
        assert p.label == "sys"
        assert p.mount_point == "/"
        assert p.is_root
        assert p.encrypted

    def test_declaration_order_kept(self):
        hw = parse_hardware(_doc([
            {"id": "b", "number": 3},
            {"id": "a", "number": 2},
        ]), "hw")
        assert [p.id for p in hw.partitions] == ["b", "a"]

    def test_missing_id(self):
        with pytest.raises(InputValidationError, match="'id'"):
            parse_hardware(_doc([{"number": 2}]), "hw")

    def test_missing_number_and_device(self):
        with pytest.raises(InputValidationError, match="'device' or 'number'"):
            parse_hardware(_doc([{"id": "data_1"}]), "hw")

    def test_number_must_be_int(self):
        with pytest.raises(InputValidationError, match="must be int"):
            parse_hardware(_doc([{"id": "data_1", "number": "2"}]), "hw")

    def test_bool_is_not_a_number(self):
        with pytest.raises(InputValidationError):
            parse_hardware(_doc([{"id": "data_1", "number": True}]), "hw")

    def test_number_without_disk_device(self):
        text = json.dumps({"disks": [{"partitions": [{"id": "a", "number": 1}]}]})
        with pytest.raises(InputValidationError, match="no 'device'"):
            parse_hardware(text, "hw")


class TestParseEncryption:
    def test_default_spec_for_encrypted_partition(self):
        hw = parse_hardware(_doc([{"id": "system", "number": 4, "encrypted": True}]), "hw")
        assert len(hw.encryption) == 1
        spec = hw.encryption[0]
        assert spec.partition_id == "system"
        assert spec.mapper_name == ""
        assert spec.key_name == ""

    def test_explicit_spec_not_duplicated(self):
        hw = parse_hardware(_doc(
            [{"id": "pool", "number": 2, "encrypted": True}],
            encryption=[{"partition": "pool", "mapper_name": "bank_system"}],
        ), "hw")
        assert len(hw.encryption) == 1
        assert hw.encryption[0].mapper_name == "bank_system"

    def test_plain_partition_gets_no_spec(self):
        hw = parse_hardware(_doc([{"id": "data_1", "number": 2}]), "hw")
        assert hw.encryption == []

    def test_dangling_spec_kept_for_builder(self):
        hw = parse_hardware(_doc(
            [{"id": "data_1", "number": 2}],
            encryption=[{"partition": "missing"}],
        ), "hw")
        assert [s.partition_id for s in hw.encryption] == ["missing"]

    def test_missing_partition_key(self):
        with pytest.raises(InputValidationError, match="'partition'"):
            parse_hardware(_doc([], encryption=[{"mapper_name": "x"}]), "hw")


class TestNames:
    def test_empty_id_rejected(self):
        with pytest.raises(InputValidationError, match="must not be empty") as excinfo:
            parse_hardware(_doc([{"id": "", "number": 3, "encrypted": True}]), "hw")
        assert excinfo.value.field == "id"

    def test_empty_label_rejected(self):
        with pytest.raises(InputValidationError) as excinfo:
            parse_hardware(_doc([{"id": "data_1", "number": 2, "label": ""}]), "hw")
        assert excinfo.value.field == "label"

    @pytest.mark.parametrize("key", ["mapper_name", "key_name"])
    @pytest.mark.parametrize("value", ["", "a/b", ".."])
    def test_invalid_encryption_names(self, key, value):
        partitions = [{"id": "system", "number": 4, "encrypted": True}]
        encryption = [{"partition": "system", key: value}]
        with pytest.raises(InputValidationError) as excinfo:
            parse_hardware(_doc(partitions, encryption=encryption), "hw")
        assert excinfo.value.field == key

    def test_slash_in_id_rejected(self):
        with pytest.raises(InputValidationError, match="invalid 'id'"):
            parse_hardware(_doc([{"id": "data/1", "number": 2}]), "hw")

    def test_empty_partition_reference_rejected(self):
        with pytest.raises(InputValidationError) as excinfo:
            parse_hardware(_doc([], encryption=[{"partition": ""}]), "hw")
        assert excinfo.value.field == "partition"


class TestParseDocument:
    def test_invalid_json(self):
        with pytest.raises(InputValidationError, match="invalid JSON"):
            parse_hardware("{not json", "hw")

    def test_top_level_must_be_object(self):
        with pytest.raises(InputValidationError):
            parse_hardware("[]", "hw")

    def test_host_id(self):
        hw = parse_hardware(_doc([], host_id="082dbc0f"), "hw")
        assert hw.host_id == "082dbc0f"

    def test_host_id_optional(self):
        assert parse_hardware(_doc([]), "hw").host_id == ""

    def test_empty_document(self):
        hw = parse_hardware("{}", "hw")
        assert hw.partitions == []
        assert hw.encryption == []


class TestLoadHardware:
    def test_name_from_file_stem(self, hardware_dir):
        hw = load_hardware(hardware_dir / "test-ext4.json")
        assert hw.name == "test-ext4"
        assert [p.id for p in hw.partitions] == ["data_1", "data_2", "system"]
        assert hw.host_id == "082dbc0f"

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputValidationError, match="cannot read"):
            load_hardware(tmp_path / "nope.json")
