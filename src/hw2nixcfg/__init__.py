"""hw2nixcfg: generate NixOS disk, boot and host configuration from a hardware description."""

__version__ = "0.1.0"
