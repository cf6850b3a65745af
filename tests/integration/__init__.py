"""
fieldschema — integration test package

File: tests/integration/__init__.py
Last updated: 2026-10-19

Purpose
- Test package marker file for end-to-end scenarios.

Functional requirements
- Must not touch the network; scenarios write only under ``tmp_path``.
"""
