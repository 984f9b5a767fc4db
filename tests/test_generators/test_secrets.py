"""Tests for the secrets.nix generator."""

from hw2nixcfg.derivations.profile_builder import build_profile
from hw2nixcfg.generators.secrets import generate_secrets
from hw2nixcfg.models.documents import DocumentKind, SecretsLayer

EXPECTED_EXT4 = """\
# Auto-generated, do not edit !
{ config, ... }:

{
  boot.initrd.secrets = {
    "/key_file" = "/etc/secrets/disks/key_file";
  };
}
"""


class TestGenerateSecrets:
    def test_scenario_a_text(self, ext4_profile, identity):
        document = generate_secrets(ext4_profile, identity)
        assert document.kind is DocumentKind.SECRETS
        assert document.text == EXPECTED_EXT4

    def test_layer(self, ext4_profile, identity):
        layer = generate_secrets(ext4_profile, identity).layer
        assert isinstance(layer, SecretsLayer)
        assert len(layer.secrets) == 1
        assert layer.secrets[0].runtime_path == "/key_file"

    def test_empty_without_encryption(self, plain_profile, identity):
        document = generate_secrets(plain_profile, identity)
        assert document.layer.secrets == ()
        assert "boot.initrd.secrets = {\n  };" in document.text

    def test_custom_install_dir(self, ext4_description, identity):
        profile = build_profile(
            ext4_description.partitions,
            ext4_description.encryption,
            secrets_dir="/var/lib/keys",
        )
        text = generate_secrets(profile, identity).text
        assert '"/key_file" = "/var/lib/keys/key_file";' in text
