"""Shared test fixtures for hw2nixcfg."""

import pathlib

import pytest

from hw2nixcfg.derivations.profile_builder import build_profile
from hw2nixcfg.models.identity import HostIdentity
from hw2nixcfg.sources.hardware_file import load_hardware

FIXTURES_DIR = pathlib.Path(__file__).parent / "fixtures"
HARDWARE_DIR = FIXTURES_DIR / "hardware"


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def hardware_dir():
    """Return the path to the hardware description fixtures."""
    return HARDWARE_DIR


@pytest.fixture
def identity():
    """A host identity matching the test-ext4 fixture."""
    return HostIdentity(
        host_name="calculon",
        host_id="082dbc0f",
        wifi_ssid="homenet",
        wifi_password="hunter22",
        key_name="key_file",
        key_source_path="/tmp",
        hardware="test-ext4",
    )


@pytest.fixture
def ext4_description():
    """One plain and two encrypted partitions sharing one key (Scenario A)."""
    return load_hardware(HARDWARE_DIR / "test-ext4.json")


@pytest.fixture
def ext4_profile(ext4_description):
    return build_profile(ext4_description.partitions, ext4_description.encryption)


@pytest.fixture
def plain_profile():
    """No encrypted partitions at all (Scenario B)."""
    description = load_hardware(HARDWARE_DIR / "test-plain.json")
    return build_profile(description.partitions, description.encryption)


@pytest.fixture
def zfs_profile():
    """Encrypted ZFS root pool with a custom mapper name."""
    description = load_hardware(HARDWARE_DIR / "test-zfs.json")
    return build_profile(description.partitions, description.encryption)
