"""Derivations: turn raw input specs into the immutable models."""
